"""
Chain reconstruction and list grouping over in-memory snapshots.
"""
from django.test import SimpleTestCase

from invoices.services.chains import (
    ChainInvoice,
    InvoiceChains,
    folio_number,
    root_ids_for,
    select_roots,
)


def inv(id, number, date, type="SALE", related=None, status="ISSUED"):
    return ChainInvoice(id=id, number=number, date=date, type=type, status=status, related_invoice_id=related)


def ids(invoices):
    return [i.id for i in invoices]


class FolioNumberTests(SimpleTestCase):
    def test_digits_only(self):
        self.assertEqual(folio_number("F-12"), 12)
        self.assertEqual(folio_number("NC 0007"), 7)
        self.assertEqual(folio_number("1001"), 1001)

    def test_no_digits_is_zero(self):
        self.assertEqual(folio_number("ABC"), 0)
        self.assertEqual(folio_number(""), 0)
        self.assertEqual(folio_number(None), 0)


class ClusterTests(SimpleTestCase):
    def setUp(self):
        self.chains = InvoiceChains([
            inv(1, "F-100", "2024-01-05"),
            inv(2, "NC-1", "2024-01-10", type="CREDIT_NOTE", related=1),
            inv(3, "F-101", "2024-01-12", related=2),
            inv(4, "F-200", "2024-03-01"),
        ])

    def test_closure_same_members_from_any_node(self):
        expected = {1, 2, 3}
        for member in (1, 2, 3):
            self.assertEqual(set(ids(self.chains.cluster(member))), expected)

    def test_cluster_is_chronological(self):
        self.assertEqual(ids(self.chains.cluster(3)), [1, 2, 3])

    def test_master_is_first_member(self):
        for member in (1, 2, 3):
            self.assertEqual(self.chains.master(member).id, 1)
        self.assertTrue(self.chains.is_master(1))
        self.assertFalse(self.chains.is_master(3))

    def test_unlinked_invoice_is_singleton(self):
        self.assertEqual(ids(self.chains.cluster(4)), [4])
        self.assertTrue(self.chains.is_master(4))

    def test_unknown_id_raises_key_error(self):
        with self.assertRaises(KeyError):
            self.chains.cluster(99)

    def test_folio_tie_break_is_numeric(self):
        chains = InvoiceChains([
            inv(10, "F-12", "2024-02-01"),
            inv(11, "F-7", "2024-02-01", related=10),
        ])
        self.assertEqual([i.number for i in chains.cluster(10)], ["F-7", "F-12"])

    def test_earlier_date_wins_over_folio(self):
        chains = InvoiceChains([
            inv(1, "F-1", "2024-05-02"),
            inv(2, "F-900", "2024-05-01", related=1),
        ])
        self.assertEqual(ids(chains.cluster(1)), [2, 1])

    def test_cycles_and_multiple_parents_terminate(self):
        chains = InvoiceChains([
            inv(1, "F-1", "2024-01-01", related=3),
            inv(2, "F-2", "2024-01-02", related=1),
            inv(3, "F-3", "2024-01-03", related=2),
            inv(4, "NC-4", "2024-01-04", type="CREDIT_NOTE", related=1),
            inv(5, "NC-5", "2024-01-05", type="CREDIT_NOTE", related=1),
        ])
        self.assertEqual(ids(chains.cluster(5)), [1, 2, 3, 4, 5])

    def test_dangling_reference_is_tolerated(self):
        chains = InvoiceChains([inv("x", "F-1", "2024-01-01", related="nonexistent-id")])
        self.assertEqual(ids(chains.cluster("x")), ["x"])
        self.assertTrue(chains.is_orphan(chains.get("x")))
        rows = select_roots(chains, ["x"])
        self.assertEqual([r.invoice.id for r in rows], ["x"])
        self.assertEqual(rows[0].children, [])

    def test_self_reference_adds_no_edge(self):
        chains = InvoiceChains([inv(1, "NC-1", "2024-01-01", type="CREDIT_NOTE", related=1)])
        self.assertEqual(chains.adjacency[1], set())
        self.assertTrue(chains.is_orphan(chains.get(1)))


class RootSelectionTests(SimpleTestCase):
    def test_matched_credit_note_surfaces_master(self):
        chains = InvoiceChains([
            inv(1, "F-100", "2024-01-05"),
            inv(2, "NC-1", "2024-01-10", type="CREDIT_NOTE", related=1),
        ])
        rows = select_roots(chains, [2])
        self.assertEqual([r.invoice.id for r in rows], [1])
        self.assertEqual(ids(rows[0].children), [2])

    def test_non_master_sale_roots_itself_without_children(self):
        chains = InvoiceChains([
            inv(1, "F-100", "2024-01-05"),
            inv(2, "NC-1", "2024-01-10", type="CREDIT_NOTE", related=1),
            inv(3, "F-101", "2024-01-12", related=2),
        ])
        rows = select_roots(chains, [3])
        self.assertEqual([r.invoice.id for r in rows], [3])
        self.assertEqual(rows[0].children, [])

    def test_orphan_credit_note_is_its_own_root(self):
        chains = InvoiceChains([inv(9, "NC-9", "2024-01-01", type="CREDIT_NOTE")])
        rows = select_roots(chains, [9])
        self.assertEqual([r.invoice.id for r in rows], [9])
        self.assertEqual(rows[0].children, [])

    def test_no_duplicate_roots_when_whole_chain_matches(self):
        chains = InvoiceChains([
            inv(1, "F-100", "2024-01-05"),
            inv(2, "NC-1", "2024-01-10", type="CREDIT_NOTE", related=1),
            inv(3, "NC-2", "2024-01-11", type="CREDIT_NOTE", related=1),
        ])
        self.assertEqual(root_ids_for(chains, [1, 2, 3, 2]), [1])

    def test_linked_credit_note_never_roots(self):
        chains = InvoiceChains([
            inv(1, "F-100", "2024-01-05"),
            inv(2, "NC-1", "2024-01-10", type="CREDIT_NOTE", related=1),
            inv(3, "F-101", "2024-01-12", related=2),
        ])
        for matched in ([2], [2, 3], [3, 2, 1]):
            self.assertNotIn(2, root_ids_for(chains, matched))

    def test_linked_credit_note_that_is_master_gives_no_root(self):
        # the note predates the invoice it references
        chains = InvoiceChains([
            inv(1, "F-100", "2024-01-05"),
            inv(2, "NC-1", "2024-01-01", type="CREDIT_NOTE", related=1),
        ])
        self.assertEqual(root_ids_for(chains, [2]), [])

    def test_orphan_credit_note_behind_earlier_master_surfaces_both(self):
        chains = InvoiceChains([
            inv(1, "F-1", "2024-01-01", related=2),
            inv(2, "NC-2", "2024-01-05", type="CREDIT_NOTE"),
        ])
        rows = select_roots(chains, [2])
        self.assertEqual([r.invoice.id for r in rows], [1, 2])
        self.assertEqual(ids(rows[0].children), [2])
        self.assertEqual(rows[1].children, [])

    def test_cancelled_non_master_root_shows_children(self):
        chains = InvoiceChains([
            inv(1, "F-100", "2024-01-05"),
            inv(2, "NC-1", "2024-01-10", type="CREDIT_NOTE", related=1),
            inv(3, "F-101", "2024-01-12", related=2, status="CANCELLED"),
        ])
        rows = select_roots(chains, [3])
        self.assertEqual(ids(rows[0].children), [1, 2])

    def test_children_gate_holds_for_every_root(self):
        chains = InvoiceChains([
            inv(1, "F-100", "2024-01-05", status="CANCELLED"),
            inv(2, "NC-1", "2024-01-10", type="CREDIT_NOTE", related=1),
            inv(3, "F-101", "2024-01-12", related=2),
            inv(4, "D-5", "2024-01-13", type="DEBIT_NOTE", related=3),
            inv(5, "F-300", "2024-02-01"),
            inv(6, "NC-7", "2024-02-03", type="CREDIT_NOTE"),
        ])
        rows = select_roots(chains, [1, 2, 3, 4, 5, 6])
        self.assertEqual([r.invoice.id for r in rows], [1, 3, 4, 5, 6])
        for row in rows:
            if row.children:
                self.assertTrue(chains.is_master(row.invoice.id) or row.invoice.is_cancelled)
        self.assertEqual(ids(rows[0].children), [2, 3, 4])

    def test_first_seen_order_is_kept(self):
        chains = InvoiceChains([
            inv(1, "F-1", "2024-01-01"),
            inv(2, "F-2", "2024-01-02"),
            inv(3, "F-3", "2024-01-03"),
        ])
        self.assertEqual(root_ids_for(chains, [3, 1, 2]), [3, 1, 2])

    def test_unknown_matched_ids_are_skipped(self):
        chains = InvoiceChains([inv(1, "F-1", "2024-01-01")])
        self.assertEqual(root_ids_for(chains, [42, 1]), [1])
