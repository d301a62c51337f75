from django.core.management.base import BaseCommand

from services.ride_management import expire_stale_proposals


class Command(BaseCommand):
    help = "Mark pending proposals whose expiry time has passed as EXPIRED."

    def handle(self, *args, **options):
        expired = expire_stale_proposals()

        self.stdout.write(
            self.style.SUCCESS(f"Expired {expired} proposal(s).")
        )
