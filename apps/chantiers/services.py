# apps/chantiers/services.py
import logging

from apps.core.cache import revalidate_paths
from apps.core.exceptions import ActionError
from .models import Chantier

logger = logging.getLogger(__name__)


class ChantierService:

    @staticmethod
    def create_chantier(user, data):
        """
        data holds the validated form: name, client, status, address,
        date_debut, email_contact.
        """
        try:
            chantier = Chantier.objects.create(
                name=data['name'],
                client=data['client'],
                status=data.get('status') or Chantier.STATUS_ETUDE,
                address_line1=data.get('address', ''),
                date_debut=data.get('date_debut'),
                email_contact=data.get('email_contact', ''),
                created_by=user,
            )
        except Exception as e:
            logger.error("Erreur insertion chantier: %s", e)
            raise ActionError("Impossible de créer le chantier")

        revalidate_paths(['/dashboard/chantiers'])
        return chantier

    @staticmethod
    def update_chantier_status(chantier, status):
        if status not in dict(Chantier.STATUS_CHOICES):
            raise ActionError("Statut invalide")

        chantier.status = status
        chantier.save(update_fields=['status', 'updated_at'])
        revalidate_paths(['/dashboard/chantiers', chantier.page_path])
        return chantier
