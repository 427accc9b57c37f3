"""
Management command to rebuild cached quantities from the movement ledger.

Usage:
    python manage.py recalculate_stock
    python manage.py recalculate_stock --dry-run
    python manage.py recalculate_stock --presentation 12
"""

from django.core.management.base import BaseCommand

from stockkeeper import stock
from stockkeeper.models import Presentation


class Command(BaseCommand):
    """Recalculate stock command."""

    help = 'Recalcule le stock des présentations à partir des mouvements actifs'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Affiche les écarts sans les corriger'
        )
        parser.add_argument(
            '--presentation',
            type=int,
            help='Limite le recalcul à une présentation (id)'
        )

    def handle(self, *args, **options):
        qs = Presentation.objects.select_related('product').order_by('pk')
        if options['presentation']:
            qs = qs.filter(pk=options['presentation'])

        drifted = 0
        for presentation in qs:
            expected = presentation.ledger_quantity()
            if expected == presentation.quantity:
                continue

            drifted += 1
            self.stdout.write(
                f'{presentation}: {presentation.quantity} → {expected}'
            )
            if not options['dry_run']:
                stock.recalculate(presentation)

        if options['dry_run']:
            self.stdout.write(f'{drifted} présentation(s) seraient corrigée(s)')
        else:
            self.stdout.write(
                self.style.SUCCESS(f'{drifted} présentation(s) corrigée(s)')
            )
