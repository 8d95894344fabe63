# apps/workflows/management/commands/seed_templates.py
from django.core.management.base import BaseCommand

from apps.workflows.services import WorkflowService


class Command(BaseCommand):
    help = "Install the public workflow templates"

    def handle(self, *args, **options):
        for result in WorkflowService.seed_templates():
            if result['status'] == 'success':
                self.stdout.write(self.style.SUCCESS(f"✅ {result['name']}"))
            else:
                self.stdout.write(self.style.WARNING(f"⏭️  {result['name']} (déjà présent)"))
