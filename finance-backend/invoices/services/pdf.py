# invoices/services/pdf.py
"""
Printable invoice (A4 portrait) rendered with reportlab.
"""
import io
from decimal import Decimal
from typing import Any, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


def format_clp(value) -> str:
    """1234567 → '$1.234.567' (CLP uses '.' as thousands separator, no decimals)."""
    amount = Decimal(str(value or 0)).quantize(Decimal("1"))
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(int(amount)):,}".replace(",", ".")


def _qty(value) -> str:
    value = Decimal(str(value))
    return str(value.to_integral_value()) if value == value.to_integral_value() else str(value)


def invoice_pdf_filename(invoice) -> str:
    return f"Factura_{invoice.number}_{invoice.date.isoformat()}.pdf"


def render_invoice_pdf(invoice, chain: List[Any] = ()) -> bytes:
    """
    One-page document: issuer/client header, line items, totals, and the
    related documents of its chain (oldest first) when there are any.
    """
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("Title", parent=styles["Title"], fontSize=16, leading=20)
    small = ParagraphStyle("Small", parent=styles["BodyText"], fontSize=9, leading=11)
    muted = ParagraphStyle("Muted", parent=small, textColor=colors.HexColor("#64748B"))

    tenant = invoice.tenant
    story: List[Any] = [
        Paragraph(escape(f"{invoice.get_type_display()} N° {invoice.number}"), title_style),
        Paragraph(escape(tenant.name + (f" · RUT {tenant.rut}" if tenant.rut else "")), muted),
        Spacer(1, 8),
    ]

    header = [
        ["Fecha", invoice.date.isoformat(), "Estado", invoice.get_status_display()],
        ["Proveedor" if invoice.supplier_id and not invoice.client_id else "Cliente",
         Paragraph(escape(invoice.counterparty_name), small), "RUT", invoice.counterparty_rut],
        ["Proyecto", getattr(invoice.project, "name", "") or "-", "Centro de costo",
         getattr(invoice.cost_center, "code", "") or "-"],
    ]
    po_number = invoice.purchase_order.number if invoice.purchase_order_id else invoice.purchase_order_number
    if po_number or invoice.dispatch_guide_number:
        header.append(["OC", po_number or "-", "Guía", invoice.dispatch_guide_number or "-"])
    header_table = Table(header, colWidths=[doc.width * w for w in (0.15, 0.35, 0.2, 0.3)])
    header_table.setStyle(TableStyle([
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    story += [header_table, Spacer(1, 12)]

    rows = [["Descripción", "Cantidad", "Precio unitario", "Total"]]
    for item in invoice.items.all():
        rows.append([Paragraph(escape(item.description), small), _qty(item.quantity),
                     format_clp(item.unit_price), format_clp(item.total)])
    if len(rows) == 1:
        rows.append([Paragraph("Sin detalle", muted), "", "", ""])
    items_table = Table(rows, colWidths=[doc.width * w for w in (0.5, 0.14, 0.18, 0.18)], repeatRows=1)
    items_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0F172A")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#CBD5E1")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    story += [items_table, Spacer(1, 10)]

    totals = Table(
        [["Neto", format_clp(invoice.net_amount)],
         ["IVA", format_clp(invoice.tax_amount)],
         ["Total", format_clp(invoice.total_amount)]],
        colWidths=[doc.width * 0.2, doc.width * 0.2],
        hAlign="RIGHT",
    )
    totals.setStyle(TableStyle([
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("FONTNAME", (0, 2), (-1, 2), "Helvetica-Bold"),
        ("LINEABOVE", (0, 2), (-1, 2), 0.5, colors.HexColor("#0F172A")),
    ]))
    story.append(totals)

    related = [m for m in chain if m.id != invoice.pk]
    if related:
        story += [Spacer(1, 14), Paragraph("Documentos relacionados", styles["Heading4"])]
        for member in related:
            story.append(Paragraph(escape(f"{member.date} · {member.type} {member.number} · {member.status}"), small))

    doc.build(story)
    pdf = buf.getvalue()
    buf.close()
    return pdf
