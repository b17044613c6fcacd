# invoices/services/documents.py
import logging
from typing import Any, Dict, List, Optional

from django.db import transaction

from invoices.models import Invoice, InvoiceItem, InvoiceStatus, InvoiceType
from .totals import compute_amounts, item_total

logger = logging.getLogger(__name__)


def _write_items(invoice: Invoice, items: List[Dict[str, Any]]) -> None:
    InvoiceItem.objects.bulk_create([
        InvoiceItem(
            invoice=invoice,
            description=it["description"],
            quantity=it["quantity"],
            unit_price=it["unit_price"],
            total=item_total(it["quantity"], it["unit_price"]),
        )
        for it in items
    ])


def _cancel_amended(invoice: Invoice) -> Optional[Invoice]:
    """A credit note voids the document it references."""
    if invoice.type != InvoiceType.CREDIT_NOTE or not invoice.related_invoice_id:
        return None
    target = Invoice.objects.select_for_update().get(pk=invoice.related_invoice_id, tenant_id=invoice.tenant_id)
    if target.status != InvoiceStatus.CANCELLED:
        target.status = InvoiceStatus.CANCELLED
        target.save(update_fields=["status", "updated_at"])
        logger.info(f"Invoice {target.number} (id={target.pk}) cancelled by credit note {invoice.number}")
    return target


def _reinstate_amended(target_id, note: Invoice) -> Optional[Invoice]:
    """
    Undo the cancellation a credit note caused once it no longer points at
    ``target_id``. Left alone while another credit note still references it.
    """
    target = Invoice.objects.select_for_update().filter(pk=target_id, tenant_id=note.tenant_id).first()
    if target is None or target.status != InvoiceStatus.CANCELLED:
        return None
    still_credited = (
        Invoice.objects.filter(related_invoice_id=target.pk, type=InvoiceType.CREDIT_NOTE)
        .exclude(pk=note.pk)
        .exists()
    )
    if still_credited:
        return None
    target.status = InvoiceStatus.PAID if target.is_paid else InvoiceStatus.ISSUED
    target.save(update_fields=["status", "updated_at"])
    logger.info(f"Invoice {target.number} (id={target.pk}) reinstated as {target.status}; credit note {note.number} moved away")
    return target


@transaction.atomic
def issue_invoice(tenant, data: Dict[str, Any], user=None) -> Invoice:
    """
    Create an invoice with its items. Amounts are derived from items (or the
    submitted net): iva = round(net * rate), total = net + iva.
    """
    data = dict(data)
    items = data.pop("items", None) or []
    net = data.pop("net_amount", None)
    amounts = compute_amounts(net=net, items=items)

    invoice = Invoice.objects.create(
        tenant=tenant,
        created_by=user if getattr(user, "is_authenticated", False) else None,
        net_amount=amounts.net,
        tax_amount=amounts.iva,
        total_amount=amounts.total,
        **data,
    )
    _write_items(invoice, items)
    _cancel_amended(invoice)
    logger.info(
        f"Issued {invoice.type} {invoice.number} (id={invoice.pk}) for tenant {tenant.code}: "
        f"net={amounts.net} iva={amounts.iva} total={amounts.total}"
    )
    return invoice


@transaction.atomic
def update_invoice(invoice: Invoice, data: Dict[str, Any]) -> Invoice:
    """Full-record replace; items are rewritten and amounts recomputed."""
    data = dict(data)
    items = data.pop("items", None) or []
    net = data.pop("net_amount", None)
    amounts = compute_amounts(net=net, items=items)

    previous_related = invoice.related_invoice_id
    was_cancelling = invoice.type == InvoiceType.CREDIT_NOTE and previous_related is not None
    for field, value in data.items():
        setattr(invoice, field, value)
    invoice.net_amount = amounts.net
    invoice.tax_amount = amounts.iva
    invoice.total_amount = amounts.total
    invoice.save()

    invoice.items.all().delete()
    _write_items(invoice, items)
    now_cancelling = invoice.is_credit_note and invoice.related_invoice_id is not None
    retargeted = invoice.related_invoice_id != previous_related
    if was_cancelling and (retargeted or not now_cancelling):
        _reinstate_amended(previous_related, invoice)
    if now_cancelling and (retargeted or not was_cancelling):
        _cancel_amended(invoice)
    return invoice


@transaction.atomic
def remove_invoice(invoice: Invoice, chain_size: int) -> str:
    """
    Standalone documents are deleted. A document that belongs to a chain
    stays in place and is cancelled so the chain can still be rebuilt.
    Returns "deleted" or "cancelled".
    """
    if chain_size <= 1:
        logger.info(f"Deleted invoice {invoice.number} (id={invoice.pk})")
        invoice.delete()
        return "deleted"
    if invoice.status != InvoiceStatus.CANCELLED:
        invoice.status = InvoiceStatus.CANCELLED
        invoice.save(update_fields=["status", "updated_at"])
    logger.info(f"Invoice {invoice.number} (id={invoice.pk}) is part of a chain; cancelled instead of deleted")
    return "cancelled"
