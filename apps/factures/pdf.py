# apps/factures/pdf.py
"""
PDF rendering of invoices with reportlab.
"""
import logging
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

ACCENT = colors.HexColor('#1f2937')


def euros(amount):
    """1234.5 -> '1 234,50 €'"""
    text = f"{amount:,.2f}".replace(',', ' ').replace('.', ',')
    return f"{text} €"


class FacturePdfGenerator:
    """Builds the PDF document of one invoice"""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self.styles.add(ParagraphStyle(
            name='CompanyName',
            parent=self.styles['Heading1'],
            fontSize=18,
            textColor=ACCENT,
            spaceAfter=6
        ))
        self.styles.add(ParagraphStyle(
            name='InfoText',
            parent=self.styles['Normal'],
            fontSize=9,
            spaceAfter=2
        ))
        self.styles.add(ParagraphStyle(
            name='RightText',
            parent=self.styles['Normal'],
            fontSize=10,
            alignment=TA_RIGHT
        ))

    def render(self, facture):
        """Return the PDF bytes of the invoice"""
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4,
            title=f"Facture {facture.reference}",
            leftMargin=1.8 * cm, rightMargin=1.8 * cm
        )

        story = []
        story.extend(self._header(facture))
        story.append(Spacer(1, 16))
        story.extend(self._client(facture))
        story.append(Spacer(1, 16))
        story.append(self._lines(facture))
        story.append(Spacer(1, 10))
        story.append(self._totals(facture))
        story.extend(self._footer(facture))

        doc.build(story)
        return buffer.getvalue()

    def _company(self, facture):
        from apps.company.models import CompanySettings
        if facture.created_by_id is None:
            return None
        return CompanySettings.objects.filter(user_id=facture.created_by_id).first()

    def _header(self, facture):
        elements = []
        company = self._company(facture)
        if company is not None:
            elements.append(Paragraph(escape(company.name or ''), self.styles['CompanyName']))
            for info in (company.address, company.phone, company.email):
                if info:
                    elements.append(Paragraph(escape(info).replace('\n', '<br/>'), self.styles['InfoText']))
            if company.siret:
                elements.append(Paragraph(f"SIRET : {escape(company.siret)}", self.styles['InfoText']))

        title = dict(facture.TYPE_CHOICES).get(facture.type, 'Facture')
        if facture.type == facture.TYPE_SITUATION and facture.situation_index:
            title = f"{title} n°{facture.situation_index}"
        elements.append(Spacer(1, 12))
        elements.append(Paragraph(f"<b>{title.upper()} {escape(facture.reference)}</b>", self.styles['Heading2']))
        elements.append(Paragraph(f"Date : {facture.date_emission:%d/%m/%Y}", self.styles['InfoText']))
        due = f"{facture.date_echeance:%d/%m/%Y}" if facture.date_echeance else "À réception"
        elements.append(Paragraph(f"Échéance : {due}", self.styles['InfoText']))
        return elements

    def _client(self, facture):
        chantier = facture.chantier
        if chantier is None:
            return []
        client = chantier.client
        elements = [Paragraph("<b>FACTURÉ À :</b>", self.styles['Heading4'])]
        elements.append(Paragraph(f"<b>{escape(client.name)}</b>", self.styles['InfoText']))
        address = ' '.join(filter(None, [client.address_line1, client.zip_code, client.city]))
        if address:
            elements.append(Paragraph(escape(address), self.styles['InfoText']))
        elements.append(Paragraph(f"Chantier : {escape(chantier.name)}", self.styles['InfoText']))
        return elements

    def _lines(self, facture):
        with_progress = facture.type == facture.TYPE_SITUATION
        header = ['Désignation', 'Qté', 'Unité', 'P.U. HT', 'TVA']
        if with_progress:
            header.append('Avanc.')
        header.append('Total HT')

        data = [header]
        for item in facture.items.all():
            row = [
                Paragraph(escape(item.description), self.styles['InfoText']),
                f"{item.quantity:g}",
                item.unit,
                euros(item.unit_price),
                f"{item.tva:g} %",
            ]
            if with_progress:
                row.append(f"{item.progress_percentage:g} %")
            row.append(euros(item.total_ht))
            data.append(row)

        widths = [7 * cm, 1.5 * cm, 1.5 * cm, 2.5 * cm, 1.5 * cm]
        if with_progress:
            widths = [5.5 * cm] + widths[1:] + [1.5 * cm]
        widths.append(2.8 * cm)

        table = Table(data, colWidths=widths, repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), ACCENT),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LINEBELOW', (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ]))
        return table

    def _totals(self, facture):
        data = [
            ['Total HT', euros(facture.total_ht)],
            ['TVA', euros(facture.total_ttc - facture.total_ht)],
            ['Total TTC', euros(facture.total_ttc)],
        ]
        table = Table(data, colWidths=[3.5 * cm, 3.5 * cm], hAlign='RIGHT')
        table.setStyle(TableStyle([
            ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
            ('FONTNAME', (0, 2), (-1, 2), 'Helvetica-Bold'),
            ('LINEABOVE', (0, 2), (-1, 2), 1, ACCENT),
        ]))
        return table

    def _footer(self, facture):
        company = self._company(facture)
        if company is None or not company.footer_text:
            return []
        return [
            Spacer(1, 24),
            Paragraph(escape(company.footer_text).replace('\n', '<br/>'), self.styles['InfoText']),
        ]


def render_facture_pdf(facture):
    """PDF bytes of the invoice, None when rendering fails"""
    try:
        return FacturePdfGenerator().render(facture)
    except Exception:
        logger.exception("Erreur génération PDF facture %s", facture.pk)
        return None
