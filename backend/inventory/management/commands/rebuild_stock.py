"""
Rebuild cached ingredient stock from the stock ledger.

    python manage.py rebuild_stock --store corner-bistro
    python manage.py rebuild_stock --all --dry-run
"""
from django.core.management.base import BaseCommand, CommandError

from inventory.services import StockLedgerService
from stores.models import Store


class Command(BaseCommand):
    help = 'Recompute Ingredient.current_stock from the stock ledger'

    def add_arguments(self, parser):
        parser.add_argument('--store', help='Slug of the store to rebuild')
        parser.add_argument(
            '--all',
            action='store_true',
            help='Rebuild every active store',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without changing anything',
        )

    def handle(self, *args, **options):
        if options['all']:
            stores = list(Store.objects.filter(is_active=True))
        elif options['store']:
            try:
                stores = [Store.objects.get(slug=options['store'])]
            except Store.DoesNotExist:
                raise CommandError(f"Store '{options['store']}' not found")
        else:
            raise CommandError('Pass --store <slug> or --all')

        total = 0
        for store in stores:
            if options['dry_run']:
                drift = StockLedgerService.find_drift(store)
            else:
                drift = StockLedgerService.rebuild_cached_stock(store)

            for item in drift:
                self.stdout.write(
                    f'{store.slug}: {item.ingredient_name} cached {item.cached_stock} '
                    f'-> ledger {item.ledger_stock}'
                )
            total += len(drift)

        verb = 'would be corrected' if options['dry_run'] else 'corrected'
        self.stdout.write(self.style.SUCCESS(f'{total} ingredient balance(s) {verb}'))
