# apps/factures/management/commands/mark_overdue_factures.py
from django.core.management.base import BaseCommand

from apps.factures.services import FactureService


class Command(BaseCommand):
    help = "Mark unpaid invoices past their due date as overdue (run by cron)"

    def handle(self, *args, **options):
        count = FactureService.mark_overdue_factures()
        self.stdout.write(self.style.SUCCESS(f"✅ {count} facture(s) passée(s) en retard"))
