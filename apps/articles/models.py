# apps/articles/models.py
from decimal import Decimal, ROUND_HALF_UP
from django.db import models
from django.core.validators import MinValueValidator
from apps.core.models import UserStampedModel


class Article(UserStampedModel):
    """
    Catalogue article with its stock level.
    Quote lines snapshot the article prices at insertion time.
    """
    name = models.CharField(max_length=255, db_index=True)
    category = models.CharField(max_length=100, blank=True, db_index=True)
    unit = models.CharField(max_length=20, default='u')
    price_ht = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    cost_ht = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    tva = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('20.00'))
    stock = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} (stock={self.stock})"

    @property
    def is_out_of_stock(self):
        return self.stock == 0

    @property
    def margin_ht(self):
        """Margin per unit before tax"""
        return (self.price_ht - self.cost_ht).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    @property
    def stock_value(self):
        """Value of current stock at cost price"""
        return (self.stock * self.cost_ht).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    def components_snapshot(self):
        """Components as stored in a quote line's details"""
        return [
            {
                'article_id': c.child_id,
                'name': c.child.name,
                'quantity': float(c.quantity),
                'unit': c.child.unit,
            }
            for c in self.composants.select_related('child')
        ]


class ArticleComposant(models.Model):
    """An article used as a component of a composite article"""
    parent = models.ForeignKey(Article, on_delete=models.CASCADE, related_name='composants')
    child = models.ForeignKey(Article, on_delete=models.CASCADE, related_name='used_in')
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1.00'))

    class Meta:
        unique_together = ('parent', 'child')

    def __str__(self):
        return f"{self.parent.name} <- {self.quantity} x {self.child.name}"
