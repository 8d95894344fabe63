# apps/workflows/calendar.py
"""
iCalendar invitation for the "calendar" workflow step
"""
from urllib.parse import urlencode

from django.utils import timezone


class CalendarInvitation:
    """One hour appointment on a job site, sent as invitation.ics"""

    PRODID = '-//Trame//App//FR'
    GOOGLE_URL = 'https://calendar.google.com/calendar/render'

    def __init__(self, title, date, time='10:00', description="Point d'avancement.", location='Sur place'):
        self.title = title
        self.date = date
        self.time = time or '10:00'
        self.description = description
        self.location = location

    @classmethod
    def from_node(cls, node, chantier):
        data = node.data or {}
        return cls(
            title=data.get('event_title') or f"RDV Chantier : {chantier.name}",
            date=data.get('event_date'),
            time=data.get('event_time') or '10:00',
            description=data.get('event_description') or "Point d'avancement.",
            location=data.get('event_location') or 'Sur place',
        )

    @property
    def start(self):
        """Local floating time, e.g. 20261102T093000"""
        return f"{self.date.replace('-', '')}T{self.time.replace(':', '')}00"

    @staticmethod
    def _escape(text):
        return (
            str(text)
            .replace('\\', '\\\\')
            .replace(';', '\\;')
            .replace(',', '\\,')
            .replace('\n', '\\n')
        )

    def to_ics(self, uid=None):
        now = timezone.now()
        uid = uid or f"{int(now.timestamp() * 1000)}@trame.app"
        lines = [
            'BEGIN:VCALENDAR',
            'VERSION:2.0',
            f'PRODID:{self.PRODID}',
            'CALSCALE:GREGORIAN',
            'METHOD:REQUEST',
            'BEGIN:VEVENT',
            f'UID:{uid}',
            f"DTSTAMP:{now.strftime('%Y%m%dT%H%M%SZ')}",
            f'DTSTART:{self.start}',
            'DURATION:PT1H',
            f'SUMMARY:{self._escape(self.title)}',
            f'DESCRIPTION:{self._escape(self.description)}',
            f'LOCATION:{self._escape(self.location)}',
            'END:VEVENT',
            'END:VCALENDAR',
        ]
        return '\r\n'.join(lines) + '\r\n'

    def google_calendar_link(self):
        params = {
            'action': 'TEMPLATE',
            'text': self.title,
            'details': self.description,
            'location': self.location,
            'dates': f'{self.start}/{self.start}',
        }
        return f'{self.GOOGLE_URL}?{urlencode(params)}'

    def to_html(self):
        return (
            f"<h1>Invitation Rendez-vous</h1>"
            f"<p><strong>{self.title}</strong></p>"
            f"<p>📅 {self.date} à {self.time}</p>"
            f"<p>📍 {self.location}</p>"
            f"<p>{self.description}</p><br/>"
            f"<p><a href=\"{self.google_calendar_link()}\">Ajouter à Google Agenda</a></p>"
        )
