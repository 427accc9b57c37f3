"""
StockMovement model — Immutable ledger of quantity changes.
"""

from django.conf import settings
from django.db import models, transaction
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockkeeper.models.enums import MovementReason, MovementStatus

# Fields a saved movement may still change (ACTIVE → CANCELLED)
MUTABLE_FIELDS = frozenset({'status', 'updated_at'})


class StockMovementQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=MovementStatus.ACTIVE)

    def for_presentation(self, presentation):
        return self.filter(presentation=presentation)

    def latest_active(self, presentation):
        """Most recent ACTIVE movement of a presentation, or None."""
        return self.active().for_presentation(presentation).order_by('-pk').first()


class StockMovement(models.Model):
    """
    Immutable record of a quantity change.

    Rules:
    - NEVER update() or delete()
    - Only status may go ACTIVE → CANCELLED
    - Corrections are new movements with reason CORRECTION
    - Updates Presentation._quantity atomically on creation

    This is the ONLY model that changes quantity.
    """

    presentation = models.ForeignKey(
        'stockkeeper.Presentation',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Présentation'),
    )
    product = models.ForeignKey(
        'stockkeeper.Product',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Produit'),
    )

    quantity_in = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Entrée'))
    quantity_out = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Sortie'))
    stock_before = models.IntegerField(verbose_name=_('Stock avant'))
    stock_after = models.IntegerField(verbose_name=_('Stock après'))

    reason = models.CharField(
        max_length=20,
        choices=MovementReason.choices,
        db_index=True,
        verbose_name=_('Motif'),
    )
    status = models.CharField(
        max_length=20,
        choices=MovementStatus.choices,
        default=MovementStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Statut'),
    )

    # Business references
    sale = models.ForeignKey(
        'stockkeeper.Sale',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
        verbose_name=_('Vente'),
    )
    supply_line = models.ForeignKey(
        'stockkeeper.SupplyLine',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
        verbose_name=_('Ligne d\'approvisionnement'),
    )

    note = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Note'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Métadonnées'))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Utilisateur'),
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Date'))
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockMovementQuerySet.as_manager()

    class Meta:
        verbose_name = _('Mouvement de stock')
        verbose_name_plural = _('Mouvements de stock')
        ordering = ['created_at', 'pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_in__isnull=True) | Q(quantity_out__isnull=True),
                name='movement_single_direction',
            ),
        ]
        indexes = [
            models.Index(fields=['presentation', 'status', 'created_at'], name='stockkeeper_move_pres_st_idx'),
        ]

    @property
    def delta(self) -> int:
        """Signed change: positive = in, negative = out."""
        return (self.quantity_in or 0) - (self.quantity_out or 0)

    @property
    def is_active(self) -> bool:
        return self.status == MovementStatus.ACTIVE

    def save(self, *args, **kwargs):
        """Save movement and update the presentation cache atomically."""
        if not self._state.adding:
            update_fields = kwargs.get('update_fields')
            if not update_fields or not set(update_fields) <= MUTABLE_FIELDS:
                raise ValueError(
                    "Les mouvements sont immuables. "
                    "Pour corriger, créez un mouvement CORRECTION."
                )
            return super().save(*args, **kwargs)

        if self.quantity_in is not None and self.quantity_out is not None:
            raise ValueError("Un mouvement est soit une entrée, soit une sortie")
        if self.stock_after != self.stock_before + self.delta:
            raise ValueError(
                f"stock_after incohérent: {self.stock_before} + {self.delta} != {self.stock_after}"
            )

        with transaction.atomic():
            super().save(*args, **kwargs)

            # Import here to avoid circular import
            from stockkeeper.models.catalog import Presentation

            Presentation.objects.filter(pk=self.presentation_id).update(
                _quantity=F('_quantity') + self.delta,
                updated_at=timezone.now(),
            )

    def delete(self, *args, **kwargs):
        """Prevent deletion — movements are immutable."""
        raise ValueError(
            "Les mouvements sont immuables. "
            "Pour annuler, utilisez stock.cancel_movement()."
        )

    def __str__(self) -> str:
        signal = '+' if self.delta > 0 else ''
        return f"{signal}{self.delta} | {self.get_reason_display()} ({self.stock_before} → {self.stock_after})"
