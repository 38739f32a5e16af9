"""
Django management command to provision the license signing keypair.

Run once per deployment before the service starts taking traffic, so that
every worker loads the same keys instead of racing to create them.
"""

from django.apps import apps
from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import KeyMaterialError


class Command(BaseCommand):
    """Command to create or load the license signing keypair."""

    help = "Create the license signing keypair if absent and print its fingerprint"

    def handle(self, *args, **options):
        """Execute the command."""
        key_provider = apps.get_app_config("licenses").key_provider
        try:
            created = key_provider.provision()
            fingerprint = key_provider.public_key_fingerprint()
        except KeyMaterialError as e:
            raise CommandError(f"Signing keys unusable: {e.message}") from e

        # pylint: disable=no-member
        if created:
            self.stdout.write(
                self.style.SUCCESS(f"Generated signing keypair in {key_provider.key_dir}")
            )
        else:
            self.stdout.write(f"Signing keypair already present in {key_provider.key_dir}")
        self.stdout.write(f"Public key fingerprint (sha256): {fingerprint}")
