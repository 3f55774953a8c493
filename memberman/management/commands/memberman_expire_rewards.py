"""Management command to write back lazily expired rewards."""

from django.core.management.base import BaseCommand

from memberman.services import rewards


class Command(BaseCommand):
    help = "Mark active rewards past their expiry date as expired"

    def handle(self, *args, **options):
        expired_count = rewards.expire_overdue()
        self.stdout.write(
            self.style.SUCCESS(f"Expired {expired_count} overdue rewards.")
        )
