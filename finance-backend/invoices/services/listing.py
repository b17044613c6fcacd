# invoices/services/listing.py
"""
Search/filter, sort and totals for the invoice list.

The filter produces the "matched" invoices in the ORM; chain grouping
(invoices.services.chains) then runs over the full company snapshot so a
match can surface the document it amends.
"""
import unicodedata
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from django.db.models import Q
from django.utils.dateparse import parse_date

from invoices.models import Invoice, InvoiceType
from .chains import ChainInvoice, InvoiceChains, InvoiceRow, folio_number

DEFAULT_ORDERING = "-date"


def name_key(name: str) -> str:
    """Case- and accent-insensitive key: "Álvarez" sorts with "alvarez"."""
    decomposed = unicodedata.normalize("NFKD", name or "")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


SORT_KEYS: Dict[str, Callable[[ChainInvoice], Any]] = {
    "folio": lambda inv: folio_number(inv.number),
    "date": lambda inv: inv.date,
    "client": lambda inv: name_key(inv.counterparty_name),
    "total": lambda inv: inv.total,
    "paid": lambda inv: inv.is_paid,
    "type": lambda inv: inv.type,
}


def _to_decimal(val) -> Optional[Decimal]:
    if val in (None, ""):
        return None
    try:
        return Decimal(str(val).strip())
    except (InvalidOperation, ValueError):
        return None


def _to_int(val) -> Optional[int]:
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


def _to_date(val) -> Optional[date]:
    if not val:
        return None
    try:
        return parse_date(str(val).strip())
    except ValueError:
        return None


@dataclass
class InvoiceQuery:
    search: str = ""
    type: str = "ALL"
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None
    ordering: str = DEFAULT_ORDERING

    @classmethod
    def from_params(cls, params) -> "InvoiceQuery":
        """
        Query params: search (or q), type, date_from, date_to, min_amount,
        max_amount, client_id, supplier_id, ordering. Unparseable filter values are ignored.
        """
        inv_type = (params.get("type") or "ALL").strip().upper()
        if inv_type != "ALL" and inv_type not in InvoiceType.values:
            inv_type = "ALL"
        return cls(
            search=(params.get("search") or params.get("q") or "").strip(),
            type=inv_type,
            date_from=_to_date(params.get("date_from")),
            date_to=_to_date(params.get("date_to")),
            min_amount=_to_decimal(params.get("min_amount")),
            max_amount=_to_decimal(params.get("max_amount")),
            client_id=_to_int(params.get("client_id")),
            supplier_id=_to_int(params.get("supplier_id")),
            ordering=(params.get("ordering") or DEFAULT_ORDERING).strip(),
        )


def filter_invoices(qs, query: InvoiceQuery):
    """Apply an InvoiceQuery to an Invoice queryset (the matched set)."""
    if query.type != "ALL":
        qs = qs.filter(type=query.type)
    if query.search:
        term = query.search
        cond = (
            Q(number__icontains=term)
            | Q(client__name__icontains=term)
            | Q(client__rut__icontains=term)
            | Q(supplier__name__icontains=term)
            | Q(supplier__rut__icontains=term)
        )
        bare = term.replace(".", "")
        if bare != term:
            cond |= Q(client__rut__icontains=bare) | Q(supplier__rut__icontains=bare)
        qs = qs.filter(cond)
    if query.date_from:
        qs = qs.filter(date__gte=query.date_from)
    if query.date_to:
        qs = qs.filter(date__lte=query.date_to)
    if query.min_amount is not None:
        qs = qs.filter(total_amount__gte=query.min_amount)
    if query.max_amount is not None:
        qs = qs.filter(total_amount__lte=query.max_amount)
    if query.client_id:
        qs = qs.filter(client_id=query.client_id)
    if query.supplier_id:
        qs = qs.filter(supplier_id=query.supplier_id)
    return qs


def parse_ordering(ordering: str) -> Tuple[str, bool]:
    """'-total' → ('total', True). Raises ValueError for unknown keys."""
    ordering = (ordering or DEFAULT_ORDERING).strip()
    descending = ordering.startswith("-")
    key = ordering.lstrip("-+")
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown ordering '{key}'. Use one of: {', '.join(sorted(SORT_KEYS))}")
    return key, descending


def sort_rows(rows: List[InvoiceRow], ordering: str = DEFAULT_ORDERING) -> List[InvoiceRow]:
    key, descending = parse_ordering(ordering)
    key_fn = SORT_KEYS[key]
    return sorted(rows, key=lambda row: key_fn(row.invoice), reverse=descending)


def company_snapshot(tenant) -> Tuple[Dict[Any, Invoice], InvoiceChains]:
    """
    Loads every invoice of the company once and indexes its chains.
    Returns (invoices by id, chains).
    """
    invoices = list(
        Invoice.objects.filter(tenant=tenant)
        .select_related("client", "supplier", "project", "cost_center")
        .prefetch_related("items")
        .order_by("date", "id")
    )
    by_id = {inv.pk: inv for inv in invoices}
    chains = InvoiceChains(ChainInvoice.from_model(inv) for inv in invoices)
    return by_id, chains


def summarize(invoices: Iterable[Invoice]) -> Dict[str, Decimal]:
    net = iva = total = Decimal("0")
    for inv in invoices:
        net += inv.net_amount or 0
        iva += inv.tax_amount or 0
        total += inv.total_amount or 0
    return {"net": net, "iva": iva, "total": total}
