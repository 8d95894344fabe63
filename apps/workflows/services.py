# apps/workflows/services.py
"""
Workflow graph editing, templates and logs.
"""
import logging

from django.db import transaction
from django.db.models import Q

from apps.core.cache import revalidate_path, revalidate_paths
from apps.core.exceptions import ActionError
from apps.workflows.automation import trigger_node_automation
from apps.workflows.engine import check_workflow_integrity
from apps.workflows.models import ChantierNode, ChantierEdge, ChantierTemplate, ChantierLog
from apps.workflows.seeds import SEED_TEMPLATES

logger = logging.getLogger(__name__)

LOG_LIMIT = 50
NODE_FIELDS = ('type', 'action_type', 'label', 'position_x', 'position_y', 'data')


class WorkflowService:

    # Steps

    @staticmethod
    def add_node(chantier, action_type, label='', position_x=0, position_y=0, data=None):
        node = ChantierNode.objects.create(
            chantier=chantier,
            action_type=action_type,
            label=label or dict(ChantierNode.ACTION_CHOICES).get(action_type, action_type),
            position_x=position_x,
            position_y=position_y,
            data=data or {},
        )
        revalidate_path(chantier.page_path)
        return node

    @staticmethod
    def update_node(node, **fields):
        """Rename, move or replace the data of a step"""
        for field, value in fields.items():
            if field in ('label', 'position_x', 'position_y', 'data'):
                setattr(node, field, value)
        node.save()
        revalidate_path(node.chantier.page_path)
        return node

    @staticmethod
    def delete_node(node):
        """Delete a step together with every link touching it"""
        chantier = node.chantier
        with transaction.atomic():
            ChantierEdge.objects.filter(Q(source=node) | Q(target=node)).delete()
            node.delete()
        revalidate_path(chantier.page_path)

    @staticmethod
    def set_node_status(node, status):
        """
        Move a step to pending or done. Validating a step runs the
        automations of the steps following it.
        """
        chantier = node.chantier
        if status not in dict(ChantierNode.STATUS_CHOICES):
            raise ActionError("Statut invalide")

        if status == ChantierNode.STATUS_DONE and node.action_type != ChantierNode.ACTION_PLAY:
            play = chantier.nodes.filter(action_type=ChantierNode.ACTION_PLAY).first()
            if play is not None and not play.is_done:
                raise ActionError(
                    "Veuillez lancer le chantier (étape 'Lancement') avant de valider d'autres étapes."
                )

        node.status = status
        node.save(update_fields=['status', 'updated_at'])
        WorkflowService.add_log(chantier, f"Étape « {node.label} » : {status}")

        result = None
        if status == ChantierNode.STATUS_DONE:
            result = trigger_node_automation(node, chantier)
        revalidate_paths([chantier.page_path, '/dashboard/trello'])
        return result

    @staticmethod
    def validate_pending_quote_node(chantier):
        """
        Validate the first pending quote step once the job site is launched
        (or has no start step) and run the following automations.
        """
        node = (
            chantier.nodes.filter(action_type=ChantierNode.ACTION_QUOTE, status=ChantierNode.STATUS_PENDING)
            .order_by('id')
            .first()
        )
        if node is None:
            return None

        play = chantier.nodes.filter(action_type=ChantierNode.ACTION_PLAY).first()
        if play is not None and not play.is_done:
            return None

        logger.info("Auto-validating quote node %s", node.pk)
        node.status = ChantierNode.STATUS_DONE
        node.save(update_fields=['status', 'updated_at'])
        WorkflowService.add_log(chantier, f"Étape « {node.label} » validée automatiquement")
        trigger_node_automation(node, chantier)
        return node

    # Links

    @staticmethod
    def create_edge(source, target):
        if source.pk == target.pk:
            raise ActionError("Une étape ne peut pas être reliée à elle-même")
        if source.chantier_id != target.chantier_id:
            raise ActionError("Les étapes doivent appartenir au même chantier")

        edge, created = ChantierEdge.objects.get_or_create(
            chantier_id=source.chantier_id, source=source, target=target
        )
        if created:
            revalidate_path(source.chantier.page_path)
        return edge

    @staticmethod
    def delete_edge(edge):
        chantier = edge.chantier
        edge.delete()
        revalidate_path(chantier.page_path)

    # Material orders

    @staticmethod
    def confirm_material_order(node, notification=None):
        """
        The user confirmed the material order requested for this step:
        the step may complete even though stock is still short.
        """
        from apps.notifications.models import Notification

        chantier = node.chantier
        node.data = {**(node.data or {}), 'order_confirmed': True}
        node.save(update_fields=['data', 'updated_at'])

        if notification is not None:
            notification.status = Notification.STATUS_ARCHIVED
            notification.save(update_fields=['status'])

        result = check_workflow_integrity(chantier)
        revalidate_paths(['/dashboard/annonces', chantier.page_path])
        return result

    # Templates

    @staticmethod
    def snapshot_graph(chantier):
        """Nodes and edges of a job site in template form"""
        nodes = [
            {
                'id': str(node.pk),
                'type': node.type,
                'action_type': node.action_type,
                'label': node.label,
                'status': ChantierNode.STATUS_PENDING,
                'position_x': node.position_x,
                'position_y': node.position_y,
                'data': node.data,
            }
            for node in chantier.nodes.all()
        ]
        edges = [
            {'id': str(edge.pk), 'source': str(edge.source_id), 'target': str(edge.target_id)}
            for edge in chantier.edges.all()
        ]
        return nodes, edges

    @staticmethod
    def save_template(user, name, description, nodes, edges):
        try:
            return ChantierTemplate.objects.create(
                name=name,
                description=description,
                nodes=nodes,
                edges=edges,
                is_public=False,
                created_by=user,
            )
        except Exception as e:
            logger.error("Save Template Error: %s", e)
            raise ActionError("Erreur lors de la sauvegarde du modèle")

    @staticmethod
    def get_templates(user):
        """Public templates and the user's own, newest first"""
        return ChantierTemplate.objects.filter(Q(is_public=True) | Q(created_by=user)).order_by('-created_at')

    @staticmethod
    @transaction.atomic
    def load_template(chantier, template):
        """
        Replace the job site graph with the template's. Every step gets a
        fresh id and starts pending; links follow the id remapping.
        """
        chantier.edges.all().delete()
        chantier.nodes.all().delete()

        id_map = {}
        for entry in template.nodes:
            node = ChantierNode.objects.create(
                chantier=chantier,
                status=ChantierNode.STATUS_PENDING,
                **{field: entry[field] for field in NODE_FIELDS if entry.get(field) is not None},
            )
            id_map[str(entry.get('id'))] = node

        edges = []
        for entry in template.edges:
            source = id_map.get(str(entry.get('source')))
            target = id_map.get(str(entry.get('target')))
            if source is None or target is None:
                raise ActionError("Erreur lors de l'import des liens")
            edges.append(ChantierEdge(chantier=chantier, source=source, target=target))
        ChantierEdge.objects.bulk_create(edges)

        WorkflowService.add_log(chantier, f"Modèle « {template.name} » chargé")
        revalidate_path(chantier.page_path)
        return len(id_map), len(edges)

    @staticmethod
    def seed_templates():
        """Install the public templates that are not there yet"""
        results = []
        for entry in SEED_TEMPLATES:
            _, created = ChantierTemplate.objects.get_or_create(
                name=entry['name'],
                is_public=True,
                defaults={
                    'description': entry['description'],
                    'nodes': entry['nodes'],
                    'edges': entry['edges'],
                },
            )
            results.append({'name': entry['name'], 'status': 'success' if created else 'exists'})
        return results

    # Logs

    @staticmethod
    def add_log(chantier, message, level=ChantierLog.LEVEL_INFO):
        return ChantierLog.objects.create(chantier=chantier, level=level, message=message)

    @staticmethod
    def get_logs(chantier):
        return chantier.logs.all()[:LOG_LIMIT]

    @staticmethod
    def check_integrity(chantier):
        result = check_workflow_integrity(chantier)
        if not result.get('success'):
            raise ActionError("Aucune étape de lancement")
        return result
