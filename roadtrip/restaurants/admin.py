from django.contrib import admin

from .models import Restaurant


@admin.register(Restaurant)
class RestaurantAdmin(admin.ModelAdmin):
    list_display = ("name", "city", "state", "status", "latitude", "longitude", "geocode_status")
    list_filter = ("status", "geocode_status", "state")
    search_fields = ("name", "city", "address")
