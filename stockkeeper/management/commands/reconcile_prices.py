"""
Management command to repair price sets without exactly one default.

Usage:
    python manage.py reconcile_prices
    python manage.py reconcile_prices --dry-run
"""

from django.core.management.base import BaseCommand
from django.db.models import Count, Q

from stockkeeper import stock
from stockkeeper.models import Presentation


class Command(BaseCommand):
    """Reconcile default selling prices command."""

    help = 'Rétablit un seul prix de vente par défaut par présentation'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Affiche les présentations concernées sans les corriger'
        )

    def handle(self, *args, **options):
        broken = (
            Presentation.objects
            .annotate(
                prices=Count('selling_prices'),
                defaults=Count('selling_prices', filter=Q(selling_prices__is_default=True)),
            )
            .filter(prices__gt=0)
            .exclude(defaults=1)
            .select_related('product')
            .order_by('pk')
        )

        count = 0
        for presentation in broken:
            count += 1
            self.stdout.write(
                f'{presentation}: {presentation.defaults} prix par défaut sur {presentation.prices}'
            )
            if not options['dry_run']:
                stock.reconcile_prices(presentation)

        if options['dry_run']:
            self.stdout.write(f'{count} présentation(s) seraient corrigée(s)')
        else:
            self.stdout.write(
                self.style.SUCCESS(f'{count} présentation(s) corrigée(s)')
            )
