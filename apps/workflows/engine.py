# apps/workflows/engine.py
"""
Workflow integrity engine.

Recomputes the status of every step of a job site graph from the business
data it depends on (quotes, invoices, stock). Steps are evaluated in
breadth first order from the start step, so a step always sees the
statuses its parents got in the same pass.
"""
import logging
from collections import deque

from apps.core.cache import revalidate_paths
from apps.workflows.models import ChantierNode, ChantierLog

logger = logging.getLogger(__name__)

PAID_STATUSES = ('payee', 'paye')


def format_quantity(quantity):
    """2.00 -> 2, 2.50 -> 2.5"""
    if quantity == quantity.to_integral_value():
        return int(quantity)
    return float(quantity)


DONE = ChantierNode.STATUS_DONE
PENDING = ChantierNode.STATUS_PENDING
WAITING = ChantierNode.STATUS_WAITING


class IntegrityPass:
    """State of one check_workflow_integrity() run"""

    def __init__(self, chantier):
        self.chantier = chantier
        self.nodes = {node.pk: node for node in chantier.nodes.all()}
        self.edges = list(chantier.edges.values_list('source_id', 'target_id'))
        self.devis_list = list(
            chantier.devis.prefetch_related('items').order_by('-created_at', '-id')
        )
        self.factures = list(chantier.factures.active())
        self.status = {pk: node.status for pk, node in self.nodes.items()}
        self.updates = []

    def parents(self, node):
        return [self.nodes[s] for s, t in self.edges if t == node.pk and s in self.nodes]

    def children(self, pk):
        return [t for s, t in self.edges if s == pk]

    def reachable_from(self, start):
        """Breadth first order of the steps reachable from start"""
        order = [start.pk]
        seen = {start.pk}
        queue = deque([start.pk])
        while queue:
            for child in self.children(queue.popleft()):
                if child not in seen and child in self.nodes:
                    seen.add(child)
                    order.append(child)
                    queue.append(child)
        return order

    def set_status(self, node, status):
        if self.status[node.pk] != status:
            self.status[node.pk] = status
            self.updates.append({'id': node.pk, 'status': status})

    def mark(self, node, valid):
        """done when valid, a done step reverts to pending otherwise"""
        if valid:
            self.set_status(node, DONE)
        elif self.status[node.pk] == DONE:
            self.set_status(node, PENDING)

    def quote_for(self, parents):
        """Quote linked to the parent quote step, else the most recent one"""
        quote_parent = next((p for p in parents if p.action_type == ChantierNode.ACTION_QUOTE), None)
        linked_id = (quote_parent.data or {}).get('devis_id') if quote_parent else None
        if linked_id:
            return next((d for d in self.devis_list if str(d.pk) == str(linked_id)), None)
        return self.devis_list[0] if self.devis_list else None

    # Rules

    def check_quote(self, node, parents):
        from apps.devis.models import Devis

        linked_id = (node.data or {}).get('devis_id')
        if linked_id:
            quote = next((d for d in self.devis_list if str(d.pk) == str(linked_id)), None)
            valid = quote is not None and quote.status in Devis.ACCEPTED_STATUSES
        else:
            valid = any(d.status in Devis.ACCEPTED_STATUSES for d in self.devis_list)
        self.mark(node, valid)

    def check_invoice(self, node, parents):
        self.mark(node, any(f.status in PAID_STATUSES for f in self.factures))

    def check_client_choice(self, node, parents):
        from apps.devis.models import Devis

        quote = self.quote_for(parents)
        if quote is None:
            return
        items = list(quote.items.all())
        self.mark(node, bool(items) and quote.status in Devis.CHOSEN_STATUSES)

    def check_material_order(self, node, parents):
        from apps.articles.models import Article

        quote = self.quote_for(parents)
        items = list(quote.items.all()) if quote else []
        if not items:
            logger.debug("Material order %s waiting: no quote or no items", node.pk)
            self.set_status(node, WAITING)
            return

        article_ids = [item.article_id for item in items if item.article_id]
        articles = Article.objects.in_bulk(article_ids)
        missing = []
        for item in items:
            article = articles.get(item.article_id)
            if article is None:
                continue
            if article.stock < item.quantity:
                missing.append(f"{article.name} (Stock: {article.stock}, Req: {format_quantity(item.quantity)})")

        data = dict(node.data or {})
        if not missing:
            if self.status[node.pk] != DONE:
                data.update(notification_sent=False, order_confirmed=False)
                self.save_data(node, data)
            self.set_status(node, DONE)
        elif data.get('order_confirmed') is True:
            self.set_status(node, DONE)
        else:
            if not data.get('notification_sent'):
                self.request_material(node, quote, missing)
                data['notification_sent'] = True
                self.save_data(node, data)
            self.set_status(node, WAITING)

    def check_email(self, node, parents):
        self.set_status(node, DONE)

    RULES = {
        ChantierNode.ACTION_QUOTE: check_quote,
        ChantierNode.ACTION_INVOICE: check_invoice,
        ChantierNode.ACTION_CLIENT_CHOICE: check_client_choice,
        ChantierNode.ACTION_MATERIAL_ORDER: check_material_order,
        ChantierNode.ACTION_EMAIL: check_email,
    }

    # Side effects

    def save_data(self, node, data):
        node.data = data
        ChantierNode.objects.filter(pk=node.pk).update(data=data)

    def request_material(self, node, quote, missing):
        from apps.notifications.services import NotificationService

        target = quote.created_by or self.chantier.created_by
        missing_text = ', '.join(missing)
        NotificationService.create_notification(
            user=target,
            type='material_request',
            title=f"Commande Requise : {node.label}",
            message=f"Stock insuffisant pour le chantier. Manquants : {missing_text}. Veuillez valider la commande.",
            data={
                'chantier_id': self.chantier.pk,
                'node_id': node.pk,
                'missing_items': missing,
            },
        )
        logger.info("Material request sent for node %s (user=%s)", node.pk, getattr(target, 'pk', None))

    def run(self):
        start = next(
            (n for n in self.nodes.values() if n.action_type == ChantierNode.ACTION_PLAY), None
        )
        if start is None:
            logger.warning("No start node for chantier %s", self.chantier.pk)
            return {'success': False, 'error': 'No Start Node'}

        if self.status[start.pk] == DONE:
            for pk in self.reachable_from(start)[1:]:
                node = self.nodes[pk]
                parents = self.parents(node)
                if not all(self.status[p.pk] == DONE for p in parents):
                    if self.status[pk] == DONE:
                        self.set_status(node, PENDING)
                    continue
                rule = self.RULES.get(node.action_type)
                if rule is not None:
                    rule(self, node, parents)

        return self.commit()

    def commit(self):
        if not self.updates:
            return {'success': True, 'message': 'Stable State'}

        logger.info("Updating %s nodes of chantier %s", len(self.updates), self.chantier.pk)
        for update in self.updates:
            node = self.nodes[update['id']]
            ChantierNode.objects.filter(pk=node.pk).update(status=update['status'])
            ChantierLog.objects.create(
                chantier=self.chantier,
                message=f"Étape « {node.label or node.action_type} » : {node.status} → {update['status']}",
            )
            node.status = update['status']
        revalidate_paths([self.chantier.page_path, '/dashboard/trello'])
        return {'success': True, 'updates': self.updates}


def check_workflow_integrity(chantier):
    """
    Recalculate the status of every step of the job site graph.

    Returns {"success": True, "updates": [...]} when statuses changed,
    {"success": True, "message": "Stable State"} otherwise, or
    {"success": False, "error": "No Start Node"}.
    """
    logger.debug("Checking workflow integrity for chantier %s", chantier.pk)
    return IntegrityPass(chantier).run()
