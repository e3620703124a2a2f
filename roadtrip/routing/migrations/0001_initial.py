import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RouteCache",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("origin_key", models.CharField(max_length=255)),
                ("destination_key", models.CharField(max_length=255)),
                ("origin_text", models.CharField(max_length=255)),
                ("destination_text", models.CharField(max_length=255)),
                ("label", models.CharField(db_index=True, max_length=520)),
                ("origin_place_id", models.CharField(blank=True, default="", max_length=255)),
                ("destination_place_id", models.CharField(blank=True, default="", max_length=255)),
                ("polyline", models.TextField()),
                ("polyline_points", models.JSONField()),
                ("distance_meters", models.IntegerField()),
                ("duration_seconds", models.IntegerField()),
                ("bounds", models.JSONField(default=dict)),
                ("raw_response", models.JSONField(blank=True, null=True)),
                ("hit_count", models.IntegerField(default=1)),
                ("last_accessed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("fetched_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("expires_at", models.DateTimeField(blank=True, db_index=True, null=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["origin_key", "destination_key", "expires_at"], name="routecache_lookup_idx"),
                    models.Index(fields=["-hit_count"], name="routecache_hits_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("origin_key", "destination_key"), name="unique_route_endpoint_pair"
                    ),
                ],
            },
        ),
    ]
