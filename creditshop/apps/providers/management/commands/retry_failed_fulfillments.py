from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from apps.providers.adapters import resolve_adapter_credentials
from apps.providers.services import retry_all_failed


class Command(BaseCommand):
    help = "Retry every failed automated delivery, one order at a time."

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=None, help='Max failed attempts to retry in this run')
        parser.add_argument('--provider', type=str, default='topup_api', help='Adapter key (default: topup_api)')
        parser.add_argument('--base-url', type=str, default=None, help='Override TOPUP_API_BASE_URL for this run')

    def handle(self, *args, **options):
        limit = options.get('limit')
        if limit is not None and limit < 1:
            raise CommandError('--limit must be positive')

        overrides = {}
        if options.get('base_url'):
            overrides['baseUrl'] = options['base_url']
        binding, creds = resolve_adapter_credentials(options.get('provider') or 'topup_api', overrides=overrides or None)
        if not binding:
            raise CommandError(f"Unknown provider: {options.get('provider')}")

        report = retry_all_failed(adapter=binding.adapter, credentials=creds, limit=limit)
        self.stdout.write(f"Retried={report.retried} Succeeded={report.succeeded} Failed={report.failed}")
        for err in report.errors:
            self.stdout.write(self.style.WARNING(f"  {err['orderId']}: {err['code']} {err['message']}"))
