from django.core.management.base import BaseCommand, CommandError

from roadtrip.routing.cache import RouteCacheStore


class Command(BaseCommand):
    help = "Delete cached routes whose label contains NAME, or all expired routes"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument("name", nargs="?", type=str, help='Substring of the route label (e.g. "Los Angeles")')
        parser.add_argument("--expired", action="store_true", help="Delete every expired cached route")

    def handle(self, *args, **options):
        name = options["name"]
        expired = options["expired"]

        if not name and not expired:
            raise CommandError('Usage: manage.py invalidate_route_cache "City Name" [--expired]')

        store = RouteCacheStore()

        if expired:
            purged = store.purge_expired()
            self.stdout.write(self.style.SUCCESS(f"✓ Purged {purged} expired cached routes"))

        if name:
            try:
                count = store.invalidate(name)
            except ValueError as e:
                raise CommandError(str(e))
            self.stdout.write(self.style.SUCCESS(f'✓ Invalidated {count} cached routes for "{name}"'))
