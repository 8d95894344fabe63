# apps/workflows/automation.py
"""
Step automations run when a workflow step is validated.

The successors of the validated step are processed one by one: e-mail,
calendar invitation and material ordering steps perform their action and,
when it succeeds, become done and hand over to their own successors.
"""
import logging
import math
import time

from django.conf import settings

from apps.core.mailer import send_html_mail
from apps.workflows.calendar import CalendarInvitation
from apps.workflows.models import ChantierNode, ChantierLog

logger = logging.getLogger(__name__)


def _pause():
    delay = getattr(settings, 'WORKFLOW_AUTOMATION_DELAY', 0)
    if delay > 0:
        time.sleep(delay)


def send_step_email(node, chantier):
    data = node.data or {}
    recipient = data.get('custom_email') or chantier.contact_email
    if not recipient:
        return False, "Email introuvable"

    subject = data.get('custom_subject') or f"Avancement de votre chantier : {chantier.name}"
    html = (
        "<h1>Nouvelle étape validée !</h1>"
        f"<p>Le chantier <strong>{chantier.name}</strong> avance.</p>"
        f"<p>Nous passons maintenant à l'étape : <strong>{node.label}</strong>.</p>"
        "<br/><p>Cordialement,<br/>L'équipe Trame</p>"
    )
    result = send_html_mail(subject, html, [recipient])
    if not result.sent:
        return False, "Erreur envoi email"
    return True, f"Email envoyé à {recipient}"


def send_calendar_invitation(node, chantier):
    invitation = CalendarInvitation.from_node(node, chantier)
    recipient = chantier.contact_email
    if not invitation.date:
        return False, "⚠️ Date manquante pour le RDV"
    if not recipient:
        return False, "⚠️ Email client introuvable"

    result = send_html_mail(
        f"Invitation : {invitation.title}",
        invitation.to_html(),
        [recipient],
        attachments=[('invitation.ics', invitation.to_ics(), 'text/calendar')],
    )
    if not result.sent:
        return False, "Erreur invitation"
    return True, f"Invitation envoyée à {recipient}"


def order_missing_material(node, chantier):
    """Order into stock whatever the latest sent quote needs"""
    from apps.articles.services import StockService
    from apps.devis.models import Devis

    quote = (
        chantier.devis.exclude(status=Devis.STATUS_BROUILLON)
        .prefetch_related('items__article')
        .order_by('-created_at', '-id')
        .first()
    )
    items = list(quote.items.all()) if quote else []
    if not items:
        return True, "Aucun devis validé pour vérifier le stock."

    report = []
    for item in items:
        article = item.article
        if article is None or article.stock >= item.quantity:
            continue
        missing = math.ceil(item.quantity - article.stock)
        StockService.adjust_stock(article, missing, 'add')
        report.append(f"Commandé {missing}x {article.name}")

    if report:
        return True, f"Commande auto : {', '.join(report)}"
    return True, "Stock suffisant (Toutes les fournitures sont disponibles)"


ACTIONS = {
    ChantierNode.ACTION_EMAIL: send_step_email,
    ChantierNode.ACTION_CALENDAR: send_calendar_invitation,
    ChantierNode.ACTION_MATERIAL_ORDER: order_missing_material,
}


class AutomationRun:

    def __init__(self, chantier):
        self.chantier = chantier
        self.nodes = {node.pk: node for node in chantier.nodes.all()}
        self.edges = list(chantier.edges.values_list('source_id', 'target_id'))
        self.visited = set()
        self.messages = []

    def successors(self, pk):
        return [self.nodes[t] for s, t in self.edges if s == pk and t in self.nodes]

    def process(self, node):
        # Each step runs once, which also stops cycles
        if node.pk in self.visited:
            return False
        self.visited.add(node.pk)

        action = ACTIONS.get(node.action_type)
        if action is None:
            return False

        logger.info("Processing node %s (%s)", node.pk, node.action_type)
        done, message = action(node, self.chantier)
        if message:
            self.messages.append(message)
            ChantierLog.objects.create(
                chantier=self.chantier,
                level=ChantierLog.LEVEL_INFO if done else ChantierLog.LEVEL_WARNING,
                message=f"{node.label or node.action_type} : {message}",
            )
        if not done:
            return False

        node.status = ChantierNode.STATUS_DONE
        ChantierNode.objects.filter(pk=node.pk).update(status=ChantierNode.STATUS_DONE)

        next_nodes = [n for n in self.successors(node.pk) if n.pk not in self.visited]
        if next_nodes:
            _pause()
            for next_node in next_nodes:
                self.process(next_node)
        return True


def trigger_node_automation(node, chantier):
    """
    Run the automations following a validated step.

    Returns {"success": bool, "message": str}.
    """
    from apps.core.cache import revalidate_path

    run = AutomationRun(chantier)
    run.visited.add(node.pk)
    targets = run.successors(node.pk)
    if not targets:
        return {'success': True, 'message': 'Aucune suite'}

    try:
        _pause()
        for target in targets:
            run.process(target)
    except Exception:
        logger.exception("Automation error for node %s", node.pk)
        ChantierLog.objects.create(
            chantier=chantier,
            level=ChantierLog.LEVEL_ERROR,
            message=f"Erreur d'automatisation après « {node.label or node.action_type} »",
        )
        return {'success': False, 'message': 'Erreur interne'}
    finally:
        revalidate_path(chantier.page_path)

    if run.messages:
        return {'success': True, 'message': f"Automatisation : {', '.join(run.messages)}"}
    return {'success': True, 'message': 'Fin de chaîne.'}
