# apps/clients/services.py
"""
Client actions: every write revalidates the pages that show client data.
"""
import logging

from django.db import transaction
from django.db.models import ProtectedError

from apps.core.cache import revalidate_paths
from apps.core.exceptions import ActionError, RelatedDataError
from .models import Client

logger = logging.getLogger(__name__)

# Quotes and invoices display client details through their job site
CLIENT_PAGES = ('/dashboard/clients', '/dashboard/factures', '/dashboard/devis')


class ClientService:

    @staticmethod
    def create_client(user, data):
        try:
            client = Client.objects.create(created_by=user, **data)
        except Exception as e:
            logger.error("Erreur création client: %s", e)
            raise ActionError("Une erreur est survenue lors de la création du client.")

        revalidate_paths(['/dashboard/clients'])
        return client

    @staticmethod
    def update_client(client, data):
        for field, value in data.items():
            setattr(client, field, value)
        try:
            client.save()
        except Exception as e:
            logger.error("Update client error: %s", e)
            raise ActionError("Erreur lors de la modification.")

        revalidate_paths(CLIENT_PAGES)
        return client

    @staticmethod
    @transaction.atomic
    def delete_client(client):
        """
        Archive the client's invoices, then delete the client together
        with its job sites and quotes.
        """
        from apps.factures.models import Facture

        archived = Facture.objects.filter(chantier__client=client).soft_delete()
        try:
            with transaction.atomic():
                client.delete()
        except ProtectedError:
            raise RelatedDataError(
                "Impossible de supprimer ce client car des données y sont encore liées (Factures/Devis)."
            )

        logger.info("Client %s deleted, %s invoice(s) archived", client.pk, archived)
        revalidate_paths(CLIENT_PAGES)
        return archived

    @staticmethod
    @transaction.atomic
    def import_clients(user, rows):
        clients = Client.objects.bulk_create([
            Client(created_by=user, **row) for row in rows
        ])
        revalidate_paths(['/dashboard/clients'])
        logger.info("Imported %s clients for user %s", len(clients), user.pk)
        return clients
