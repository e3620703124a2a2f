from django.db import models


class Restaurant(models.Model):
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100, db_index=True)
    state = models.CharField(max_length=10, db_index=True)
    zip_code = models.CharField(max_length=20, blank=True, default="")
    country = models.CharField(max_length=2, default="US")

    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    rating = models.FloatField(null=True, blank=True)

    STATUS_CHOICES = [
        ("open", "Open"),
        ("closed", "Closed"),
        ("unknown", "Unknown"),
    ]
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="open", db_index=True)
    is_public = models.BooleanField(default=True)

    GEOCODE_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("success", "Success"),
        ("failed", "Failed"),
    ]
    geocode_status = models.CharField(max_length=10, choices=GEOCODE_STATUS_CHOICES, default="pending", db_index=True)
    geocode_attempts = models.IntegerField(default=0)
    geocode_last_error = models.TextField(null=True, blank=True)
    geocoded_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["state", "city"], name="restaurant_state_city_idx"),
            models.Index(fields=["latitude", "longitude"], name="restaurant_coords_idx"),
        ]

    def __str__(self):
        return f"{self.name} - {self.city}, {self.state}"

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None
