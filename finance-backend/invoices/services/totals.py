# invoices/services/totals.py
from decimal import Decimal, ROUND_HALF_UP
from dataclasses import dataclass
from typing import Iterable, Optional, Any

from django.conf import settings

PESO = Decimal("1")
DEFAULT_IVA_RATE = Decimal("0.19")


def pesos(q) -> Decimal:
    """Round to whole pesos, half-up (CLP has no minor unit)."""
    return Decimal(str(q)).quantize(PESO, rounding=ROUND_HALF_UP)


def iva_rate() -> Decimal:
    return Decimal(str(getattr(settings, "INVOICE_IVA_RATE", DEFAULT_IVA_RATE)))


@dataclass
class Amounts:
    net: Decimal
    iva: Decimal
    total: Decimal


def item_total(quantity, unit_price) -> Decimal:
    return pesos(Decimal(str(quantity)) * Decimal(str(unit_price)))


def compute_amounts(net=None, items: Optional[Iterable[Any]] = None) -> Amounts:
    """
    net → (net, iva, total) with iva = round(net * rate) and total = net + iva.
    When line items are given their totals replace the submitted net.
    Items may be dicts or objects with quantity/unit_price.
    """
    items = list(items or [])
    if items:
        net_value = Decimal("0")
        for it in items:
            qty = it["quantity"] if isinstance(it, dict) else it.quantity
            price = it["unit_price"] if isinstance(it, dict) else it.unit_price
            net_value += item_total(qty, price)
    else:
        net_value = pesos(net or 0)
    iva = pesos(net_value * iva_rate())
    return Amounts(net=net_value, iva=iva, total=net_value + iva)
