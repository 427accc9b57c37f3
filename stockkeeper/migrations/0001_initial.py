"""
Initial migration for Stockkeeper models.
"""

from decimal import Decimal
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Stockkeeper models: Product, Presentation, Sale, Supply, SupplyLine,
    SellingPrice, StockMovement, StockAlert."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Nom')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('category', models.CharField(blank=True, default='', max_length=100, verbose_name='Catégorie')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Produit',
                'verbose_name_plural': 'Produits',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Presentation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('size', models.CharField(blank=True, default='', max_length=50, verbose_name='Taille')),
                ('unit', models.CharField(max_length=50, verbose_name='Unité')),
                ('purchase_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))], verbose_name="Prix d'achat")),
                ('_quantity', models.IntegerField(default=0, verbose_name='Stock')),
                ('low_stock_threshold', models.PositiveIntegerField(default=0, help_text='Une alerte est émise quand le stock descend à ce niveau.', verbose_name='Seuil de stock bas')),
                ('sku', models.CharField(blank=True, default='', max_length=64, validators=[django.core.validators.RegexValidator('^[A-Z0-9-]+$', 'SKU invalide. Utilisez des majuscules, chiffres et tirets')], verbose_name='SKU')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='presentations', to='stockkeeper.product', verbose_name='Produit')),
            ],
            options={
                'verbose_name': 'Présentation',
                'verbose_name_plural': 'Présentations',
                'ordering': ['product', 'unit'],
            },
        ),
        migrations.CreateModel(
            name='Sale',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantité')),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Prix unitaire')),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14, verbose_name='Montant total')),
                ('sale_date', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Date de vente')),
                ('client_name', models.CharField(blank=True, default='', max_length=200, verbose_name='Client')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('CANCELLED', 'Annulée')], db_index=True, default='ACTIVE', max_length=20, verbose_name='Statut')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Créée par')),
                ('presentation', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales', to='stockkeeper.presentation', verbose_name='Présentation')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales', to='stockkeeper.product', verbose_name='Produit')),
            ],
            options={
                'verbose_name': 'Vente',
                'verbose_name_plural': 'Ventes',
                'ordering': ['-sale_date'],
            },
        ),
        migrations.CreateModel(
            name='Supply',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('status', models.CharField(choices=[('COMMANDE_INITIEE', 'Commande initiée'), ('RECEPTIONNE', 'Réceptionné'), ('PARTIELLEMENT_RECEPTIONNE', 'Partiellement réceptionné'), ('NON_RECEPTIONNE', 'Non réceptionné')], db_index=True, default='COMMANDE_INITIEE', max_length=30, verbose_name='Statut')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Approvisionnement',
                'verbose_name_plural': 'Approvisionnements',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='SupplyLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ordered_quantity', models.PositiveIntegerField(verbose_name='Quantité commandée')),
                ('received_quantity', models.PositiveIntegerField(default=0, verbose_name='Quantité reçue')),
                ('purchase_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name="Prix d'achat")),
                ('selling_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name='Prix de vente')),
                ('status', models.CharField(choices=[('EN_ATTENTE', 'En attente'), ('RECEPTIONNE', 'Réceptionné'), ('PARTIELLEMENT_RECEPTIONNE', 'Partiellement réceptionné'), ('NON_RECEPTIONNE', 'Non réceptionné')], default='EN_ATTENTE', max_length=30, verbose_name='Statut')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('presentation', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='supply_lines', to='stockkeeper.presentation', verbose_name='Présentation')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='supply_lines', to='stockkeeper.product', verbose_name='Produit')),
                ('supply', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='stockkeeper.supply', verbose_name='Approvisionnement')),
            ],
            options={
                'verbose_name': "Ligne d'approvisionnement",
                'verbose_name_plural': "Lignes d'approvisionnement",
                'ordering': ['pk'],
            },
        ),
        migrations.CreateModel(
            name='SellingPrice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('label', models.CharField(max_length=100, verbose_name='Libellé')),
                ('price', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Prix')),
                ('is_default', models.BooleanField(default=False, verbose_name='Prix par défaut')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('presentation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='selling_prices', to='stockkeeper.presentation', verbose_name='Présentation')),
            ],
            options={
                'verbose_name': 'Prix de vente',
                'verbose_name_plural': 'Prix de vente',
                'ordering': ['-is_default', 'label'],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_in', models.PositiveIntegerField(blank=True, null=True, verbose_name='Entrée')),
                ('quantity_out', models.PositiveIntegerField(blank=True, null=True, verbose_name='Sortie')),
                ('stock_before', models.IntegerField(verbose_name='Stock avant')),
                ('stock_after', models.IntegerField(verbose_name='Stock après')),
                ('reason', models.CharField(choices=[('INITIAL', 'Stock initial'), ('ADJUSTMENT', 'Ajustement'), ('SALE', 'Vente'), ('RETURN', 'Retour'), ('CORRECTION', 'Correction'), ('SUPPLY', 'Approvisionnement')], db_index=True, max_length=20, verbose_name='Motif')),
                ('status', models.CharField(choices=[('ACTIVE', 'Actif'), ('CANCELLED', 'Annulé')], db_index=True, default='ACTIVE', max_length=20, verbose_name='Statut')),
                ('note', models.CharField(blank=True, default='', max_length=255, verbose_name='Note')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Métadonnées')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Date')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('presentation', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='stockkeeper.presentation', verbose_name='Présentation')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='stockkeeper.product', verbose_name='Produit')),
                ('sale', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='stockkeeper.sale', verbose_name='Vente')),
                ('supply_line', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='stockkeeper.supplyline', verbose_name="Ligne d'approvisionnement")),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL, verbose_name='Utilisateur')),
            ],
            options={
                'verbose_name': 'Mouvement de stock',
                'verbose_name_plural': 'Mouvements de stock',
                'ordering': ['created_at', 'pk'],
            },
        ),
        migrations.CreateModel(
            name='StockAlert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('LOW_STOCK', 'Stock bas'), ('OUT_OF_STOCK', 'Rupture de stock')], max_length=20, verbose_name='Type')),
                ('quantity', models.IntegerField(verbose_name='Stock')),
                ('threshold', models.PositiveIntegerField(verbose_name='Seuil')),
                ('message', models.CharField(max_length=255, verbose_name='Message')),
                ('is_read', models.BooleanField(db_index=True, default=False, verbose_name='Lue')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Créée le')),
                ('presentation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='stockkeeper.presentation', verbose_name='Présentation')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='stockkeeper.product', verbose_name='Produit')),
            ],
            options={
                'verbose_name': 'Alerte de stock',
                'verbose_name_plural': 'Alertes de stock',
                'ordering': ['-created_at', '-pk'],
            },
        ),
        # Constraints
        migrations.AddConstraint(
            model_name='presentation',
            constraint=models.UniqueConstraint(condition=models.Q(('sku', ''), _negated=True), fields=('sku',), name='unique_presentation_sku'),
        ),
        migrations.AddConstraint(
            model_name='supplyline',
            constraint=models.CheckConstraint(condition=models.Q(('ordered_quantity__gt', 0)), name='supply_line_ordered_positive'),
        ),
        migrations.AddConstraint(
            model_name='supplyline',
            constraint=models.CheckConstraint(condition=models.Q(('received_quantity__lte', models.F('ordered_quantity'))), name='supply_line_received_within_ordered'),
        ),
        migrations.AddConstraint(
            model_name='sellingprice',
            constraint=models.UniqueConstraint(condition=models.Q(('is_default', True)), fields=('presentation',), name='unique_default_selling_price'),
        ),
        migrations.AddConstraint(
            model_name='sellingprice',
            constraint=models.CheckConstraint(condition=models.Q(('price__gt', Decimal('0'))), name='selling_price_positive'),
        ),
        migrations.AddConstraint(
            model_name='stockmovement',
            constraint=models.CheckConstraint(condition=models.Q(('quantity_in__isnull', True), ('quantity_out__isnull', True), _connector='OR'), name='movement_single_direction'),
        ),
        # Indexes
        migrations.AddIndex(
            model_name='stockmovement',
            index=models.Index(fields=['presentation', 'status', 'created_at'], name='stockkeeper_move_pres_st_idx'),
        ),
    ]
