from django.core.management.base import BaseCommand
from django.db.models import Count

from roadtrip.planner.apps import get_trip_planner
from roadtrip.restaurants.geocoding import GeocodeMatch
from roadtrip.restaurants.models import Restaurant
from roadtrip.routing.exceptions import UpstreamThrottled


class Command(BaseCommand):
    help = "Geocode restaurant addresses with Nominatim, one request per second"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            help="Limit total number of restaurants to process (for testing)",
        )
        parser.add_argument(
            "--state",
            type=str,
            help="Only geocode restaurants in a specific state (e.g., CA, NY)",
        )
        parser.add_argument(
            "--retry-failed",
            action="store_true",
            help="Retry restaurants that previously failed geocoding",
        )
        parser.add_argument(
            "--max-attempts",
            type=int,
            default=3,
            help="Maximum geocoding attempts per restaurant (default: 3)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Geocode but do not write coordinates back",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        self._processed = 0

        if dry_run:
            self.stdout.write(self.style.WARNING("Dry run: no changes will be saved"))

        try:
            stats = get_trip_planner().geocode_missing(
                state=options["state"],
                limit=options["limit"],
                retry_failed=options["retry_failed"],
                max_attempts=options["max_attempts"],
                dry_run=dry_run,
                on_result=self._report,
            )
        except UpstreamThrottled as e:
            self.stdout.write(self.style.ERROR(f"✗ Stopped: {e}"))
            return

        if stats.total == 0:
            self.stdout.write(self.style.SUCCESS("✓ No restaurants to geocode"))
            return

        self.stdout.write(
            f"\nProcessed {stats.total} restaurants in {stats.elapsed_seconds:.1f}s: "
            + self.style.SUCCESS(f"✓ {stats.succeeded}")
            + " | "
            + self.style.ERROR(f"✗ {stats.failed}")
            + (f" | skipped {stats.skipped}" if stats.skipped else "")
        )

        if not dry_run:
            self._print_summary()

    def _report(self, restaurant, result):
        self._processed += 1
        label = f"{restaurant.name}, {restaurant.city}, {restaurant.state}"

        if isinstance(result, GeocodeMatch):
            if self._processed <= 5:
                self.stdout.write(self.style.SUCCESS(f"  ✓ {label} ({result.latitude:.5f}, {result.longitude:.5f})"))
        else:
            self.stdout.write(self.style.ERROR(f"  ✗ {label}: {result.message}"))

        if self._processed % 10 == 0:
            self.stdout.write(f"Progress: {self._processed} geocoded")

    def _print_summary(self):
        counts = dict(Restaurant.objects.values_list("geocode_status").annotate(n=Count("id")))
        total = sum(counts.values())
        if not total:
            return

        self.stdout.write("\n" + "=" * 60)
        self.stdout.write(self.style.SUCCESS("GEOCODING STATUS SUMMARY"))
        self.stdout.write("=" * 60)
        self.stdout.write(f"Total restaurants: {total}")

        success = counts.get("success", 0)
        failed = counts.get("failed", 0)
        pending = counts.get("pending", 0)

        self.stdout.write(self.style.SUCCESS(f"✓ Success: {success} ({success / total * 100:.1f}%)"))
        if failed:
            self.stdout.write(self.style.ERROR(f"✗ Failed: {failed} ({failed / total * 100:.1f}%)"))
        if pending:
            self.stdout.write(self.style.WARNING(f"⏳ Pending: {pending} ({pending / total * 100:.1f}%)"))
