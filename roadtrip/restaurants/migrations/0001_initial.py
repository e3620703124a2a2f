from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Restaurant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("address", models.CharField(blank=True, default="", max_length=255)),
                ("city", models.CharField(db_index=True, max_length=100)),
                ("state", models.CharField(db_index=True, max_length=10)),
                ("zip_code", models.CharField(blank=True, default="", max_length=20)),
                ("country", models.CharField(default="US", max_length=2)),
                ("latitude", models.FloatField(blank=True, null=True)),
                ("longitude", models.FloatField(blank=True, null=True)),
                ("rating", models.FloatField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("open", "Open"), ("closed", "Closed"), ("unknown", "Unknown")],
                        db_index=True,
                        default="open",
                        max_length=10,
                    ),
                ),
                ("is_public", models.BooleanField(default=True)),
                (
                    "geocode_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("success", "Success"), ("failed", "Failed")],
                        db_index=True,
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("geocode_attempts", models.IntegerField(default=0)),
                ("geocode_last_error", models.TextField(blank=True, null=True)),
                ("geocoded_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["state", "city"], name="restaurant_state_city_idx"),
                    models.Index(fields=["latitude", "longitude"], name="restaurant_coords_idx"),
                ],
            },
        ),
    ]
