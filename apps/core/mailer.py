# apps/core/mailer.py
"""
Outgoing e-mail helper built on Django's mail framework.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


@dataclass
class MailResult:
    sent: bool
    simulated: bool = False
    error: str = ''


def send_html_mail(subject, html, recipients, attachments=None):
    """
    Send an HTML e-mail with optional (filename, content, mimetype) attachments.

    With EMAIL_DELIVERY_ENABLED off the message is only logged and the
    result is flagged as simulated.
    """
    recipients = [r for r in recipients if r]
    attachments = attachments or []

    if not settings.EMAIL_DELIVERY_ENABLED:
        logger.warning("Simulation d'envoi d'email (livraison désactivée)")
        logger.info("À: %s | Sujet: %s", ', '.join(recipients), subject)
        for filename, content, _mimetype in attachments:
            logger.info("[Pièce jointe %s: %s KB]", filename, round(len(content) / 1024))
        return MailResult(sent=True, simulated=True)

    message = EmailMultiAlternatives(
        subject=subject,
        body=strip_tags(html),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=recipients,
    )
    message.attach_alternative(html, 'text/html')
    for filename, content, mimetype in attachments:
        message.attach(filename, content, mimetype)

    try:
        message.send()
    except Exception as e:
        logger.error("Email error (%s): %s", subject, e)
        return MailResult(sent=False, error=str(e))

    logger.info("Email sent to %s: %s", ', '.join(recipients), subject)
    return MailResult(sent=True)
