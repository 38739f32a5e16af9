"""
Django management command to finish interrupted license issuance.

Licenses whose token could not be attached still carry a placeholder key;
this mints and attaches their tokens.
"""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from licenses.apps import get_lifecycle_service
from licenses.domain.license import PENDING_KEY_PREFIX
from licenses.infrastructure.models import License as LicenseModel


class Command(BaseCommand):
    """Command to mint tokens for licenses stuck in pending issuance."""

    help = "Mint and attach tokens for licenses left pending issuance"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - only list the pending licenses",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        # pylint: disable=no-member
        pending = list(
            LicenseModel.objects.filter(key__startswith=PENDING_KEY_PREFIX).order_by("id")
        )
        self.stdout.write(f"Found {len(pending)} license(s) pending issuance")

        if options["dry_run"]:
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            for model in pending:
                self.stdout.write(f"  - License {model.id} for clinic {model.clinic_id}")
            return

        if not pending:
            self.stdout.write(self.style.SUCCESS("No pending licenses"))
            return

        completed = async_to_sync(get_lifecycle_service().complete_pending_issuance)()
        self.stdout.write(self.style.SUCCESS(f"Completed issuance of {len(completed)} license(s)"))
