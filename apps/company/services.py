# apps/company/services.py
import logging
import os

from django.utils import timezone

from apps.core.cache import revalidate_path
from apps.core.exceptions import ActionError
from .models import CompanySettings

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = ('name', 'address', 'siret', 'email', 'phone', 'footer_text')


class CompanyService:

    @staticmethod
    def get_company_settings(user):
        return CompanySettings.objects.filter(user=user).first()

    @staticmethod
    def save_company_settings(user, data, logo=None):
        """
        Upsert the user's company settings. A failed logo upload is logged
        and the other fields are still saved.
        """
        defaults = {field: data[field] for field in SETTINGS_FIELDS if field in data}
        try:
            company, _ = CompanySettings.objects.update_or_create(user=user, defaults=defaults)
        except Exception as e:
            logger.error("Erreur save settings: %s", e)
            raise ActionError("Erreur lors de la sauvegarde")

        if logo is not None and logo.size > 0:
            extension = os.path.splitext(logo.name)[1]
            filename = f"logo-{user.pk}-{int(timezone.now().timestamp())}{extension}"
            try:
                company.logo.save(filename, logo, save=True)
            except OSError as e:
                logger.error("Erreur upload logo: %s", e)

        revalidate_path('/dashboard/settings')
        return company
