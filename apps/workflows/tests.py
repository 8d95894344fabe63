# apps/workflows/tests.py
"""
Workflows app tests - integrity engine, automations, templates and API
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.cache import cache
from django.core.management import call_command
from django.db import transaction
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.articles.models import Article
from apps.articles.services import StockService
from apps.articles.signals import current_batch
from apps.chantiers.models import Chantier
from apps.clients.models import Client
from apps.core.exceptions import ActionError
from apps.core.middleware import set_current_user
from apps.devis.models import Devis, DevisItem
from apps.factures.models import Facture
from apps.notifications.models import Notification
from apps.workflows.automation import trigger_node_automation
from apps.workflows.calendar import CalendarInvitation
from apps.workflows.engine import check_workflow_integrity
from apps.workflows.models import ChantierNode, ChantierEdge, ChantierTemplate, ChantierLog
from apps.workflows.seeds import SEED_TEMPLATES
from apps.workflows.services import WorkflowService

User = get_user_model()

DONE = ChantierNode.STATUS_DONE
PENDING = ChantierNode.STATUS_PENDING
WAITING = ChantierNode.STATUS_WAITING


class WorkflowFixtureMixin:

    def create_fixtures(self):
        cache.clear()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.client_row = Client.objects.create(name='Lefèvre', email='client@mail.test', created_by=self.user)
        self.chantier = Chantier.objects.create(name='Rénovation cuisine', client=self.client_row, created_by=self.user)

    def node(self, action_type, status=PENDING, label='', **data):
        return ChantierNode.objects.create(
            chantier=self.chantier, action_type=action_type, status=status,
            label=label or action_type, data=data
        )

    def link(self, *nodes):
        for source, target in zip(nodes, nodes[1:]):
            ChantierEdge.objects.create(chantier=self.chantier, source=source, target=target)

    def refreshed(self, node):
        node.refresh_from_db()
        return node

    def quote_with_item(self, article, quantity, devis_status=Devis.STATUS_SIGNE):
        devis = Devis.objects.create(chantier=self.chantier, status=devis_status, created_by=self.user)
        DevisItem.objects.create(devis=devis, article=article, description=article.name, quantity=quantity)
        return devis


class IntegrityEngineTests(WorkflowFixtureMixin, TestCase):
    """Test check_workflow_integrity"""

    def setUp(self):
        self.create_fixtures()

    def test_no_start_node(self):
        """Test a graph without start step is reported"""
        self.node('quote')

        self.assertEqual(check_workflow_integrity(self.chantier), {'success': False, 'error': 'No Start Node'})

    def test_not_launched_is_stable(self):
        """Test nothing is evaluated before the job site is launched"""
        play = self.node('play')
        email = self.node('email')
        self.link(play, email)

        result = check_workflow_integrity(self.chantier)

        self.assertEqual(result, {'success': True, 'message': 'Stable State'})
        self.assertEqual(self.refreshed(email).status, PENDING)

    def test_quote_step_follows_accepted_quote(self):
        """Test the quote step is done once a quote is accepted"""
        play = self.node('play', DONE)
        quote = self.node('quote')
        self.link(play, quote)
        devis = Devis.objects.create(chantier=self.chantier, status=Devis.STATUS_REFUSE)

        check_workflow_integrity(self.chantier)
        self.assertEqual(self.refreshed(quote).status, PENDING)

        devis.status = Devis.STATUS_APPROUVE
        devis.save()
        result = check_workflow_integrity(self.chantier)

        self.assertEqual(result['updates'], [{'id': quote.pk, 'status': DONE}])
        self.assertEqual(self.refreshed(quote).status, DONE)
        self.assertTrue(ChantierLog.objects.filter(chantier=self.chantier).exists())

    def test_quote_step_linked_to_a_quote(self):
        """Test a quote step linked to a quote only looks at that quote"""
        play = self.node('play', DONE)
        draft = Devis.objects.create(chantier=self.chantier, status=Devis.STATUS_BROUILLON)
        Devis.objects.create(chantier=self.chantier, status=Devis.STATUS_SIGNE)
        quote = self.node('quote', devis_id=draft.pk)
        self.link(play, quote)

        check_workflow_integrity(self.chantier)

        self.assertEqual(self.refreshed(quote).status, PENDING)

    def test_done_steps_revert_when_invalid(self):
        """Test a done step reverts to pending, and so do its successors"""
        play = self.node('play', DONE)
        quote = self.node('quote', DONE)
        email = self.node('email', DONE)
        self.link(play, quote, email)

        result = check_workflow_integrity(self.chantier)

        self.assertEqual(len(result['updates']), 2)
        self.assertEqual(self.refreshed(quote).status, PENDING)
        self.assertEqual(self.refreshed(email).status, PENDING)

    def test_validation_cascades_in_a_single_pass(self):
        """Test a validated step lets its successors complete in the same check"""
        play = self.node('play', DONE)
        quote = self.node('quote')
        email = self.node('email')
        self.link(play, quote, email)
        Devis.objects.create(chantier=self.chantier, status=Devis.STATUS_SIGNE, created_by=self.user)

        result = check_workflow_integrity(self.chantier)

        self.assertEqual(
            result['updates'],
            [{'id': quote.pk, 'status': DONE}, {'id': email.pk, 'status': DONE}]
        )
        self.assertEqual(self.refreshed(email).status, DONE)
        self.assertEqual(check_workflow_integrity(self.chantier), {'success': True, 'message': 'Stable State'})

    def test_invoice_step_needs_paid_active_invoice(self):
        """Test only a paid, non archived invoice completes the invoice step"""
        play = self.node('play', DONE)
        invoice = self.node('invoice')
        self.link(play, invoice)
        facture = Facture.objects.create(chantier=self.chantier, status=Facture.STATUS_PAYEE)
        facture.soft_delete()

        check_workflow_integrity(self.chantier)
        self.assertEqual(self.refreshed(invoice).status, PENDING)

        facture.restore()
        check_workflow_integrity(self.chantier)
        self.assertEqual(self.refreshed(invoice).status, DONE)

    def test_client_choice(self):
        """Test the client choice step needs a chosen quote with lines"""
        play = self.node('play', DONE)
        choice = self.node('client_choice')
        self.link(play, choice)

        check_workflow_integrity(self.chantier)
        self.assertEqual(self.refreshed(choice).status, PENDING)

        article = Article.objects.create(name='Plan de travail', created_by=self.user)
        self.quote_with_item(article, 1, Devis.STATUS_EN_ATTENTE)
        check_workflow_integrity(self.chantier)
        self.assertEqual(self.refreshed(choice).status, DONE)

    def test_material_order_without_quote_waits(self):
        """Test the material step waits for a quote"""
        play = self.node('play', DONE)
        material = self.node('material_order')
        self.link(play, material)

        check_workflow_integrity(self.chantier)

        self.assertEqual(self.refreshed(material).status, WAITING)

    def test_material_order_shortage_notifies_once(self):
        """Test a shortage sends one material request and waits"""
        article = Article.objects.create(name='Plaque BA13', stock=2, created_by=self.user)
        self.quote_with_item(article, Decimal('5'))
        play = self.node('play', DONE)
        quote = self.node('quote')
        material = self.node('material_order', label='Fournitures')
        self.link(play, quote, material)

        check_workflow_integrity(self.chantier)
        check_workflow_integrity(self.chantier)

        material = self.refreshed(material)
        self.assertEqual(material.status, WAITING)
        self.assertTrue(material.data['notification_sent'])
        notification = Notification.objects.get()
        self.assertEqual(notification.user, self.user)
        self.assertEqual(notification.type, 'material_request')
        self.assertEqual(notification.title, 'Commande Requise : Fournitures')
        self.assertEqual(notification.data['missing_items'], ['Plaque BA13 (Stock: 2, Req: 5)'])
        self.assertEqual(notification.data['node_id'], material.pk)

    def test_material_order_confirmed(self):
        """Test a confirmed order completes the step despite the shortage"""
        article = Article.objects.create(name='Plaque BA13', stock=0, created_by=self.user)
        self.quote_with_item(article, 5)
        play = self.node('play', DONE)
        quote = self.node('quote', DONE)
        material = self.node('material_order', WAITING, notification_sent=True, order_confirmed=True)
        self.link(play, quote, material)

        check_workflow_integrity(self.chantier)

        self.assertEqual(self.refreshed(material).status, DONE)

    def test_material_order_in_stock_resets_flags(self):
        """Test enough stock completes the step and resets its flags"""
        article = Article.objects.create(name='Plaque BA13', stock=10, created_by=self.user)
        self.quote_with_item(article, 5)
        play = self.node('play', DONE)
        quote = self.node('quote', DONE)
        material = self.node('material_order', WAITING, notification_sent=True, order_confirmed=False)
        self.link(play, quote, material)

        check_workflow_integrity(self.chantier)

        material = self.refreshed(material)
        self.assertEqual(material.status, DONE)
        self.assertFalse(material.data['notification_sent'])
        self.assertFalse(Notification.objects.exists())

    def test_stock_increase_rechecks_waiting_steps(self):
        """Test a stock increase re-evaluates job sites waiting on material"""
        article = Article.objects.create(name='Plaque BA13', stock=2, created_by=self.user)
        self.quote_with_item(article, 5)
        play = self.node('play', DONE)
        quote = self.node('quote', DONE)
        material = self.node('material_order', WAITING, notification_sent=True)
        self.link(play, quote, material)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            StockService.adjust_stock(article, 3, 'add')

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(self.refreshed(material).status, DONE)

    def test_stock_changes_in_one_transaction_check_once(self):
        """Test several stock changes in a transaction queue a single check"""
        article = Article.objects.create(name='Plaque BA13', stock=2, created_by=self.user)
        self.quote_with_item(article, 5)
        play = self.node('play', DONE)
        quote = self.node('quote', DONE)
        material = self.node('material_order', WAITING, notification_sent=True)
        self.link(play, quote, material)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            StockService.adjust_stock(article, 1, 'add')
            StockService.adjust_stock(article, 2, 'add')

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(self.refreshed(material).status, DONE)

    def test_rolled_back_stock_change_queues_nothing(self):
        """Test a rolled back stock change leaves no pending check behind"""
        article = Article.objects.create(name='Plaque BA13', stock=2, created_by=self.user)
        self.quote_with_item(article, 5)
        play = self.node('play', DONE)
        quote = self.node('quote', DONE)
        material = self.node('material_order', WAITING, notification_sent=True)
        self.link(play, quote, material)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(ValueError):
                with transaction.atomic():
                    StockService.adjust_stock(article, 3, 'add')
                    raise ValueError("rollback")

        self.assertEqual(callbacks, [])
        self.assertIsNone(current_batch())
        self.assertEqual(self.refreshed(material).status, WAITING)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            StockService.adjust_stock(article, 3, 'add')

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(self.refreshed(material).status, DONE)

    def test_stock_recheck_is_attributed_to_current_user(self):
        """Test the queued check records the user who changed the stock"""
        article = Article.objects.create(name='Plaque BA13', stock=2, created_by=self.user)
        self.quote_with_item(article, 5)
        material = self.node('material_order', WAITING)
        self.link(self.node('play', DONE), material)
        set_current_user(self.user)
        self.addCleanup(set_current_user, None)

        with self.assertLogs('apps.articles.signals', level='INFO') as logs:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                StockService.adjust_stock(article, 3, 'add')

        self.assertEqual(callbacks[0].triggered_by, self.user)
        self.assertIn(f'Stock change by {self.user}', logs.output[0])

    def test_check_workflows_command(self):
        """Test the cron command checks launched job sites"""
        play = self.node('play', DONE)
        email = self.node('email')
        self.link(play, email)

        call_command('check_workflows', verbosity=0)

        self.assertEqual(self.refreshed(email).status, DONE)


class AutomationTests(WorkflowFixtureMixin, TestCase):
    """Test step automations"""

    def setUp(self):
        self.create_fixtures()

    def test_no_successor(self):
        """Test a step without successors has nothing to run"""
        step = self.node('setup')

        self.assertEqual(trigger_node_automation(step, self.chantier), {'success': True, 'message': 'Aucune suite'})

    def test_email_chain(self):
        """Test validating a step sends the following e-mails in turn"""
        quote = self.node('quote')
        first = self.node('email', label='Mail 1')
        second = self.node('email', label='Mail 2', custom_email='autre@mail.test', custom_subject='Suivi')
        self.link(quote, first, second)

        result = WorkflowService.set_node_status(quote, DONE)

        self.assertEqual(
            result['message'],
            'Automatisation : Email envoyé à client@mail.test, Email envoyé à autre@mail.test'
        )
        self.assertEqual(self.refreshed(first).status, DONE)
        self.assertEqual(self.refreshed(second).status, DONE)
        self.assertEqual([m.to for m in mail.outbox], [['client@mail.test'], ['autre@mail.test']])
        self.assertEqual(mail.outbox[0].subject, 'Avancement de votre chantier : Rénovation cuisine')
        self.assertEqual(mail.outbox[1].subject, 'Suivi')

    def test_email_without_recipient_stops(self):
        """Test an e-mail step without recipient stays pending"""
        self.client_row.email = ''
        self.client_row.save()
        start = self.node('setup')
        email = self.node('email')
        after = self.node('email')
        self.link(start, email, after)

        result = trigger_node_automation(start, self.chantier)

        self.assertEqual(result['message'], 'Automatisation : Email introuvable')
        self.assertEqual(self.refreshed(email).status, PENDING)
        self.assertEqual(self.refreshed(after).status, PENDING)
        self.assertTrue(ChantierLog.objects.filter(level=ChantierLog.LEVEL_WARNING).exists())

    def test_cycle_runs_each_step_once(self):
        """Test a cycle of e-mail steps sends each e-mail once"""
        start = self.node('setup')
        first = self.node('email')
        second = self.node('email')
        self.link(start, first, second, first)

        trigger_node_automation(start, self.chantier)

        self.assertEqual(len(mail.outbox), 2)

    def test_calendar_without_date(self):
        """Test a calendar step needs a date"""
        start = self.node('setup')
        calendar = self.node('calendar')
        self.link(start, calendar)

        result = trigger_node_automation(start, self.chantier)

        self.assertEqual(result['message'], 'Automatisation : ⚠️ Date manquante pour le RDV')
        self.assertEqual(self.refreshed(calendar).status, PENDING)

    def test_calendar_invitation(self):
        """Test a calendar step e-mails an ICS invitation"""
        start = self.node('setup')
        calendar = self.node('calendar', event_date='2026-11-02', event_time='09:30')
        self.link(start, calendar)

        trigger_node_automation(start, self.chantier)

        self.assertEqual(self.refreshed(calendar).status, DONE)
        filename, content, mimetype = mail.outbox[0].attachments[0]
        self.assertEqual(filename, 'invitation.ics')
        self.assertEqual(mimetype, 'text/calendar')
        self.assertIn('DTSTART:20261102T093000', content)

    def test_material_order_automation(self):
        """Test a material step orders the missing quantities into stock"""
        article = Article.objects.create(name='Rail 48', stock=1, created_by=self.user)
        self.quote_with_item(article, Decimal('3.5'), Devis.STATUS_EN_ATTENTE)
        start = self.node('setup')
        material = self.node('material_order')
        self.link(start, material)

        result = trigger_node_automation(start, self.chantier)

        article.refresh_from_db()
        self.assertEqual(article.stock, 4)
        self.assertEqual(result['message'], 'Automatisation : Commande auto : Commandé 3x Rail 48')
        self.assertEqual(self.refreshed(material).status, DONE)

    def test_done_requires_launch(self):
        """Test steps cannot be validated before the start step"""
        play = self.node('play')
        quote = self.node('quote')
        self.link(play, quote)

        with self.assertRaises(ActionError) as ctx:
            WorkflowService.set_node_status(quote, DONE)

        self.assertIn("Lancement", ctx.exception.detail['error'])


class CalendarInvitationTests(TestCase):
    """Test CalendarInvitation"""

    def test_ics_escaping(self):
        """Test text values are escaped and lines end with CRLF"""
        invitation = CalendarInvitation('RDV; métré, cuisine', '2026-11-02', description='Ligne 1\nLigne 2')

        ics = invitation.to_ics(uid='42@trame.app')

        self.assertIn('SUMMARY:RDV\\; métré\\, cuisine\r\n', ics)
        self.assertIn('DESCRIPTION:Ligne 1\\nLigne 2\r\n', ics)
        self.assertIn('DTSTART:20261102T100000\r\n', ics)
        self.assertTrue(ics.endswith('END:VCALENDAR\r\n'))

    def test_google_link(self):
        """Test the Google Calendar link carries the appointment"""
        link = CalendarInvitation('RDV', '2026-11-02', '14:00').google_calendar_link()

        self.assertTrue(link.startswith('https://calendar.google.com/calendar/render?action=TEMPLATE'))
        self.assertIn('20261102T140000', link)


class TemplateTests(WorkflowFixtureMixin, TestCase):
    """Test workflow templates"""

    def setUp(self):
        self.create_fixtures()

    def test_load_template_remaps_ids(self):
        """Test loading a template replaces the graph with fresh pending steps"""
        self.node('email', DONE)
        seed = SEED_TEMPLATES[0]
        template = ChantierTemplate.objects.create(name=seed['name'], nodes=seed['nodes'], edges=seed['edges'])

        nodes, edges = WorkflowService.load_template(self.chantier, template)

        self.assertEqual((nodes, edges), (4, 3))
        self.assertEqual(self.chantier.nodes.count(), 4)
        self.assertFalse(self.chantier.nodes.exclude(status=PENDING).exists())
        self.assertFalse(self.chantier.nodes.filter(action_type='email').exists())
        play = self.chantier.nodes.get(action_type='play')
        self.assertEqual(play.outgoing.get().target.action_type, 'quote')

    def test_load_template_with_broken_edge(self):
        """Test a template with an unknown edge end leaves the graph untouched"""
        existing = self.node('play')
        template = ChantierTemplate.objects.create(
            name='Cassé',
            nodes=[{'id': 'a', 'action_type': 'play', 'label': 'Lancement'}],
            edges=[{'id': 'e1', 'source': 'a', 'target': 'zz'}]
        )

        with self.assertRaises(ActionError):
            WorkflowService.load_template(self.chantier, template)

        self.assertEqual(list(self.chantier.nodes.all()), [existing])

    def test_seed_templates_is_idempotent(self):
        """Test seeding twice installs the public templates once"""
        first = WorkflowService.seed_templates()
        second = WorkflowService.seed_templates()

        self.assertEqual([r['status'] for r in first], ['success'] * 3)
        self.assertEqual([r['status'] for r in second], ['exists'] * 3)
        self.assertEqual(ChantierTemplate.objects.filter(is_public=True).count(), 3)

    def test_get_templates(self):
        """Test users see public templates and their own"""
        other = User.objects.create_user(username='voisin', password='testpass123')
        public = ChantierTemplate.objects.create(name='Public', is_public=True)
        own = ChantierTemplate.objects.create(name='Perso', created_by=self.user)
        ChantierTemplate.objects.create(name='Autre', created_by=other)

        self.assertEqual(set(WorkflowService.get_templates(self.user)), {public, own})


class WorkflowAPITests(WorkflowFixtureMixin, APITestCase):
    """Test workflow API endpoints"""

    def setUp(self):
        self.create_fixtures()
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def test_add_node_and_link(self):
        """Test adding steps and linking them"""
        url = reverse('workflow-nodes-list')
        play = self.client.post(url, {'chantier_id': self.chantier.pk, 'action_type': 'play'}, format='json')
        quote = self.client.post(url, {'chantier_id': self.chantier.pk, 'action_type': 'quote'}, format='json')

        self.assertEqual(play.status_code, status.HTTP_201_CREATED)
        self.assertEqual(play.data['node']['label'], 'Lancement')

        response = self.client.post(
            reverse('workflow-edges-list'),
            {'source': play.data['node']['id'], 'target': quote.data['node']['id']},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        graph = self.client.get(reverse('workflows-graph', args=[self.chantier.pk]))
        self.assertEqual(len(graph.data['nodes']), 2)
        self.assertEqual(len(graph.data['edges']), 1)
        self.assertEqual(graph.data['progress'], {'done': 0, 'total': 1, 'percent': 0})

    def test_self_link_rejected(self):
        """Test a step cannot be linked to itself"""
        node = self.node('quote')

        response = self.client.post(
            reverse('workflow-edges-list'), {'source': node.pk, 'target': node.pk}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Une étape ne peut pas être reliée à elle-même'})

    def test_delete_node_removes_links(self):
        """Test deleting a step deletes its links"""
        play = self.node('play')
        quote = self.node('quote')
        self.link(play, quote)

        response = self.client.delete(reverse('workflow-nodes-detail', args=[quote.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ChantierEdge.objects.exists())

    def test_status_endpoint(self):
        """Test launching the job site through the status action"""
        play = self.node('play')

        response = self.client.post(
            reverse('workflow-nodes-update-status', args=[play.pk]), {'status': 'done'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['node']['status'], DONE)
        self.assertEqual(response.data['automation'], {'success': True, 'message': 'Aucune suite'})

    def test_foreign_node_not_found(self):
        """Test another user's steps are hidden"""
        other = User.objects.create_user(username='voisin', password='testpass123')
        node = self.node('quote')
        self.client.force_authenticate(user=other)

        response = self.client.patch(
            reverse('workflow-nodes-detail', args=[node.pk]), {'label': 'X'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_check_without_start_node(self):
        """Test checking a graph without start step"""
        response = self.client.post(reverse('workflows-check', args=[self.chantier.pk]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Aucune étape de lancement'})

    def test_logs(self):
        """Test appending and listing log lines"""
        response = self.client.post(
            reverse('workflows-logs', args=[self.chantier.pk]), {'message': 'Livraison reportée'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(reverse('workflows-logs', args=[self.chantier.pk]))
        self.assertEqual(response.data[0]['message'], 'Livraison reportée')

    def test_save_and_load_template(self):
        """Test saving a job site graph as template and loading it elsewhere"""
        play = self.node('play', DONE)
        quote = self.node('quote', DONE)
        self.link(play, quote)

        response = self.client.post(
            reverse('workflows-save-template', args=[self.chantier.pk]), {'name': 'Mon flux'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        template_id = response.data['template']['id']

        other_site = Chantier.objects.create(name='Garage', client=self.client_row, created_by=self.user)
        response = self.client.post(
            reverse('workflows-load-template', args=[other_site.pk]), {'template_id': template_id}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual((response.data['nodes'], response.data['edges']), (2, 1))
        self.assertFalse(other_site.nodes.filter(status=DONE).exists())

    def test_private_template_of_other_user(self):
        """Test another user's private template cannot be loaded"""
        other = User.objects.create_user(username='voisin', password='testpass123')
        template = ChantierTemplate.objects.create(name='Privé', created_by=other)

        response = self.client.post(
            reverse('workflows-load-template', args=[self.chantier.pk]), {'template_id': template.pk}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Modèle introuvable'})

    def test_public_template_cannot_be_deleted(self):
        """Test public templates are read only"""
        template = ChantierTemplate.objects.create(name='Public', is_public=True)

        response = self.client.delete(reverse('workflow-templates-detail', args=[template.pk]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'error': 'Accès refusé'})

    def test_seed_endpoint(self):
        """Test seeding public templates through the API"""
        response = self.client.post(reverse('workflow-templates-seed'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['results']), 3)
