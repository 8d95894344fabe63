# apps/workflows/management/commands/check_workflows.py
from django.core.management.base import BaseCommand

from apps.chantiers.models import Chantier
from apps.workflows.engine import check_workflow_integrity
from apps.workflows.models import ChantierNode


class Command(BaseCommand):
    help = "Recompute the workflow step statuses of every running job site (run by cron)"

    def add_arguments(self, parser):
        parser.add_argument('--chantier', type=int, help='Only check this job site')

    def handle(self, *args, **options):
        chantiers = Chantier.objects.exclude(
            status__in=[Chantier.STATUS_TERMINE, Chantier.STATUS_ANNULE]
        ).filter(nodes__action_type=ChantierNode.ACTION_PLAY).distinct()
        if options.get('chantier'):
            chantiers = chantiers.filter(pk=options['chantier'])

        updated = 0
        for chantier in chantiers:
            result = check_workflow_integrity(chantier)
            if result.get('updates'):
                updated += 1
                self.stdout.write(f"  {chantier.name}: {len(result['updates'])} étape(s) mise(s) à jour")

        self.stdout.write(self.style.SUCCESS(f"✅ {chantiers.count()} chantier(s) vérifié(s), {updated} modifié(s)"))
