# apps/core/business_rules.py
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def to_decimal(value):
    """Missing or non numeric amounts count as zero"""
    if value is None or value == '':
        return Decimal('0')
    try:
        return Decimal(str(value))
    except ArithmeticError:
        return Decimal('0')


class BusinessRules:

    @staticmethod
    def round_cents(amount):
        return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)

    @staticmethod
    def document_totals(items, with_progress=False):
        """
        Totals of quote or invoice lines, rounded to cents.

        HT = Σ quantity × unit_price (× progress_percentage / 100 for
        invoices), TTC adds each line's VAT rate.
        Returns (total_ht, total_ttc).
        """
        total_ht = Decimal('0')
        total_ttc = Decimal('0')
        for item in items:
            line_ht = to_decimal(item.quantity) * to_decimal(item.unit_price)
            if with_progress:
                line_ht = line_ht * to_decimal(item.progress_percentage) / HUNDRED
            total_ht += line_ht
            total_ttc += line_ht * (1 + to_decimal(item.tva) / HUNDRED)

        return BusinessRules.round_cents(total_ht), BusinessRules.round_cents(total_ttc)

    @staticmethod
    def percentage_of(amount, percentage):
        return BusinessRules.round_cents(to_decimal(amount) * to_decimal(percentage) / HUNDRED)
