# purchasing/services.py
import logging
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from invoices.services.totals import compute_amounts, item_total
from .models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus

logger = logging.getLogger(__name__)


def _write_items(po: PurchaseOrder, items: List[Dict[str, Any]]) -> None:
    PurchaseOrderItem.objects.bulk_create([
        PurchaseOrderItem(
            purchase_order=po,
            description=it["description"],
            quantity=it["quantity"],
            unit_price=it["unit_price"],
            total=item_total(it["quantity"], it["unit_price"]),
        )
        for it in items
    ])


@transaction.atomic
def save_purchase_order(tenant, data: Dict[str, Any], user=None, instance: Optional[PurchaseOrder] = None) -> PurchaseOrder:
    """
    Create or update an order. When ``items`` is given the lines are
    rewritten and the amounts recomputed from them.
    """
    data = dict(data)
    items = data.pop("items", None)

    if instance is None:
        po = PurchaseOrder(tenant=tenant, created_by=user if getattr(user, "is_authenticated", False) else None)
    else:
        po = instance
    for field, value in data.items():
        setattr(po, field, value)
    if items is not None:
        amounts = compute_amounts(items=items)
        po.net_amount, po.tax_amount, po.total_amount = amounts.net, amounts.iva, amounts.total
    po.save()

    if items is not None:
        po.items.all().delete()
        _write_items(po, items)
    po.assign_number()
    logger.info(
        f"{'Created' if instance is None else 'Updated'} purchase order {po.number} (id={po.pk}) "
        f"for tenant {tenant.code}: total={po.total_amount}"
    )
    return po


@transaction.atomic
def approve_purchase_order(po: PurchaseOrder) -> PurchaseOrder:
    po = PurchaseOrder.objects.select_for_update().get(pk=po.pk)
    if po.status != PurchaseOrderStatus.PENDING:
        raise ValueError("Only pending purchase orders can be approved.")
    if not po.items.exists():
        raise ValueError("Purchase order must have at least one item.")
    po.status = PurchaseOrderStatus.APPROVED
    po.approved_at = timezone.now()
    po.save(update_fields=["status", "approved_at", "updated_at"])
    logger.info(f"Purchase order {po.number} (id={po.pk}) approved")
    return po
