# invoices/services/chains.py
"""
Document chain reconstruction.

Invoices linked through ``related_invoice`` (credit notes, debit notes,
re-invoicing) form a cluster: the original document plus every amendment
reachable from it. Everything here works on an in-memory snapshot of one
company's invoices and performs no queries, so the same code serves the list
view, the chain detail view and the tests.

Two pieces:

  InvoiceChains  builds an undirected adjacency map from the one-way
                 ``related_invoice_id`` references and resolves clusters
                 in chronological order (date, then folio digits).
  select_roots   given the invoices that matched a search/filter, decides
                 which ones are listed as top-level rows and which cluster
                 members nest under them.
"""
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

CREDIT_NOTE = "CREDIT_NOTE"
CANCELLED = "CANCELLED"

_NON_DIGITS = re.compile(r"\D+")


def folio_number(number: Optional[str]) -> int:
    """
    Numeric value of a folio: 'F-12' → 12, 'NC 0007' → 7.
    Folios without digits sort as 0.
    """
    digits = _NON_DIGITS.sub("", str(number or ""))
    return int(digits) if digits else 0


@dataclass(frozen=True)
class ChainInvoice:
    """
    The slice of an invoice the chain logic needs. Built once per request
    at the persistence boundary (see ``from_model``).
    """
    id: Any
    number: str
    date: str                      # ISO YYYY-MM-DD; compared as a string
    type: str
    status: str = "ISSUED"
    related_invoice_id: Any = None
    # sort-only display fields; the counterparty is the client or the supplier
    counterparty_name: str = ""
    total: Decimal = Decimal("0")
    is_paid: bool = False

    @classmethod
    def from_model(cls, invoice) -> "ChainInvoice":
        inv_date = invoice.date
        return cls(
            id=invoice.pk,
            number=invoice.number or "",
            date=inv_date.isoformat() if hasattr(inv_date, "isoformat") else str(inv_date or ""),
            type=invoice.type,
            status=invoice.status,
            related_invoice_id=invoice.related_invoice_id,
            counterparty_name=getattr(invoice, "counterparty_name", "") or "",
            total=invoice.total_amount if invoice.total_amount is not None else Decimal("0"),
            is_paid=bool(invoice.is_paid),
        )

    @property
    def is_credit_note(self) -> bool:
        return self.type == CREDIT_NOTE

    @property
    def is_cancelled(self) -> bool:
        return self.status == CANCELLED


def chronological_key(invoice: ChainInvoice) -> Tuple[str, int]:
    return (invoice.date or "", folio_number(invoice.number))


class InvoiceChains:
    """
    Cluster index over a snapshot of invoices.

    Duplicate ids keep the last record seen. A ``related_invoice_id`` that
    does not resolve inside the snapshot adds no edge: the referencing
    invoice is treated as standalone.
    """

    def __init__(self, invoices: Iterable[ChainInvoice]):
        self.by_id: Dict[Any, ChainInvoice] = {}
        self._position: Dict[Any, int] = {}
        for pos, inv in enumerate(invoices):
            self.by_id[inv.id] = inv
            self._position[inv.id] = pos

        self.adjacency: Dict[Any, Set[Any]] = {inv_id: set() for inv_id in self.by_id}
        for inv in self.by_id.values():
            rel = inv.related_invoice_id
            if rel is None or rel == inv.id:
                continue
            if rel not in self.by_id:
                logger.debug(f"Invoice {inv.id} references unknown invoice {rel}; treating it as standalone")
                continue
            self.adjacency[inv.id].add(rel)
            self.adjacency[rel].add(inv.id)

        self._clusters: Dict[Any, Tuple[ChainInvoice, ...]] = {}

    def __len__(self):
        return len(self.by_id)

    def __contains__(self, invoice_id):
        return invoice_id in self.by_id

    def get(self, invoice_id) -> Optional[ChainInvoice]:
        return self.by_id.get(invoice_id)

    def is_orphan(self, invoice: ChainInvoice) -> bool:
        """No usable back-reference: missing, dangling or pointing at itself."""
        rel = invoice.related_invoice_id
        return rel is None or rel == invoice.id or rel not in self.by_id

    def _sort_key(self, invoice: ChainInvoice):
        # snapshot position keeps equal (date, folio) pairs deterministic
        return chronological_key(invoice) + (self._position[invoice.id],)

    def cluster(self, invoice_id) -> List[ChainInvoice]:
        """
        Every invoice connected to ``invoice_id``, oldest first.
        Raises KeyError for ids outside the snapshot.
        """
        cached = self._clusters.get(invoice_id)
        if cached is not None:
            return list(cached)
        if invoice_id not in self.by_id:
            raise KeyError(invoice_id)

        visited = {invoice_id}
        queue = deque([invoice_id])
        while queue:
            current = queue.popleft()
            for neighbour in self.adjacency[current]:
                if neighbour not in visited:
                    visited.add(neighbour)
                    queue.append(neighbour)

        members = tuple(sorted((self.by_id[i] for i in visited), key=self._sort_key))
        for member_id in visited:
            self._clusters[member_id] = members
        return list(members)

    def master(self, invoice_id) -> ChainInvoice:
        return self.cluster(invoice_id)[0]

    def is_master(self, invoice_id) -> bool:
        return self.master(invoice_id).id == invoice_id


@dataclass
class InvoiceRow:
    invoice: ChainInvoice
    children: List[ChainInvoice] = field(default_factory=list)


def root_ids_for(chains: InvoiceChains, matched_ids: Iterable[Any]) -> List[Any]:
    """
    Top-level ids for a set of matched invoices, first-seen order, no repeats.

    A matched invoice that is not a credit note always lists itself. A matched
    credit note lists its cluster master instead (when it is not the master
    itself), and lists itself only when it is an orphan.
    """
    root_ids: List[Any] = []
    seen: Set[Any] = set()

    def add(inv_id):
        if inv_id not in seen:
            seen.add(inv_id)
            root_ids.append(inv_id)

    for matched_id in matched_ids:
        inv = chains.get(matched_id)
        if inv is None:
            continue
        if not inv.is_credit_note:
            add(inv.id)
            continue
        master = chains.master(inv.id)
        if master.id != inv.id:
            add(master.id)
        if chains.is_orphan(inv):
            add(inv.id)

    # linked credit notes are only reachable through their master
    return [
        inv_id for inv_id in root_ids
        if not (chains.by_id[inv_id].is_credit_note and not chains.is_orphan(chains.by_id[inv_id]))
    ]


def select_roots(chains: InvoiceChains, matched_ids: Iterable[Any]) -> List[InvoiceRow]:
    """
    Rows for the invoice list. Children (the rest of the cluster, oldest
    first) are attached only to a cluster master or to a cancelled root;
    intermediate links show none.
    """
    rows: List[InvoiceRow] = []
    for root_id in root_ids_for(chains, matched_ids):
        root = chains.by_id[root_id]
        cluster = chains.cluster(root_id)
        if cluster[0].id == root_id or root.is_cancelled:
            children = [m for m in cluster if m.id != root_id]
        else:
            children = []
        rows.append(InvoiceRow(invoice=root, children=children))
    return rows
