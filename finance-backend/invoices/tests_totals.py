from decimal import Decimal

from django.test import SimpleTestCase, override_settings
from django.http import QueryDict

from invoices.services.chains import ChainInvoice, InvoiceRow
from invoices.services.listing import InvoiceQuery, name_key, parse_ordering, sort_rows
from invoices.services.pdf import format_clp
from invoices.services.totals import compute_amounts, item_total, pesos


class AmountTests(SimpleTestCase):
    def test_iva_rounds_half_up_to_whole_pesos(self):
        # 1_050 * 0.19 = 199.5
        amounts = compute_amounts(net=Decimal("1050"))
        self.assertEqual(amounts.iva, Decimal("200"))
        self.assertEqual(amounts.total, Decimal("1250"))

    def test_total_is_net_plus_iva(self):
        for net in (0, 1, 99, 100_000, 1_234_567):
            amounts = compute_amounts(net=net)
            self.assertEqual(amounts.total, amounts.net + amounts.iva)
            self.assertEqual(amounts.iva, pesos(Decimal(net) * Decimal("0.19")))

    def test_items_replace_submitted_net(self):
        items = [
            {"quantity": Decimal("2"), "unit_price": Decimal("10000")},
            {"quantity": Decimal("1.5"), "unit_price": Decimal("333")},
        ]
        amounts = compute_amounts(net=Decimal("1"), items=items)
        self.assertEqual(amounts.net, Decimal("20500"))
        self.assertEqual(amounts.iva, Decimal("3895"))

    def test_item_total_rounds(self):
        self.assertEqual(item_total("1.5", "333"), Decimal("500"))

    @override_settings(INVOICE_IVA_RATE="0.10")
    def test_rate_comes_from_settings(self):
        self.assertEqual(compute_amounts(net=1000).iva, Decimal("100"))


class FormatTests(SimpleTestCase):
    def test_clp_format(self):
        self.assertEqual(format_clp(1234567), "$1.234.567")
        self.assertEqual(format_clp(0), "$0")
        self.assertEqual(format_clp(Decimal("-5000")), "-$5.000")


class ListingQueryTests(SimpleTestCase):
    def test_from_params_ignores_bad_values(self):
        q = InvoiceQuery.from_params(QueryDict("type=bogus&min_amount=abc&date_from=2024-13-40&client_id=x"))
        self.assertEqual(q.type, "ALL")
        self.assertIsNone(q.min_amount)
        self.assertIsNone(q.date_from)
        self.assertIsNone(q.client_id)
        self.assertEqual(q.ordering, "-date")

    def test_from_params_reads_filters(self):
        q = InvoiceQuery.from_params(QueryDict("q=F-1&type=credit_note&max_amount=5000&ordering=folio"))
        self.assertEqual(q.search, "F-1")
        self.assertEqual(q.type, "CREDIT_NOTE")
        self.assertEqual(q.max_amount, Decimal("5000"))
        self.assertEqual(q.ordering, "folio")

    def test_parse_ordering(self):
        self.assertEqual(parse_ordering("-total"), ("total", True))
        self.assertEqual(parse_ordering("client"), ("client", False))
        with self.assertRaises(ValueError):
            parse_ordering("color")

    def test_sort_rows_by_folio_is_numeric(self):
        rows = [
            InvoiceRow(ChainInvoice(id=1, number="F-12", date="2024-01-01", type="SALE")),
            InvoiceRow(ChainInvoice(id=2, number="F-7", date="2024-01-02", type="SALE")),
        ]
        self.assertEqual([r.invoice.id for r in sort_rows(rows, "folio")], [2, 1])
        self.assertEqual([r.invoice.id for r in sort_rows(rows, "-folio")], [1, 2])
        self.assertEqual([r.invoice.id for r in sort_rows(rows)], [2, 1])


def row(id, **fields):
    fields.setdefault("number", f"F-{id}")
    fields.setdefault("date", "2024-01-01")
    fields.setdefault("type", "SALE")
    return InvoiceRow(ChainInvoice(id=id, **fields))


def order(rows, ordering):
    return [r.invoice.id for r in sort_rows(rows, ordering)]


class SortRowsTests(SimpleTestCase):
    def test_client_ignores_case_and_accents(self):
        rows = [
            row(1, counterparty_name="bosque Ltda"),
            row(2, counterparty_name="Álvarez y Cía"),
            row(3, counterparty_name="Andes SpA"),
            row(4, counterparty_name="Ébano"),
        ]
        self.assertEqual(order(rows, "client"), [2, 3, 1, 4])
        self.assertEqual(order(rows, "-client"), [4, 1, 3, 2])

    def test_name_key(self):
        self.assertEqual(name_key("Álvarez"), name_key("alvarez"))
        self.assertEqual(name_key(""), "")

    def test_total(self):
        rows = [
            row(1, total=Decimal("5950")),
            row(2, total=Decimal("119000")),
            row(3, total=Decimal("0")),
        ]
        self.assertEqual(order(rows, "total"), [3, 1, 2])
        self.assertEqual(order(rows, "-total"), [2, 1, 3])

    def test_paid(self):
        rows = [row(1, is_paid=True), row(2, is_paid=False), row(3, is_paid=True)]
        self.assertEqual(order(rows, "paid"), [2, 1, 3])
        self.assertEqual(order(rows, "-paid"), [1, 3, 2])

    def test_type(self):
        rows = [row(1, type="SALE"), row(2, type="CREDIT_NOTE"), row(3, type="PURCHASE")]
        self.assertEqual(order(rows, "type"), [2, 3, 1])
        self.assertEqual(order(rows, "-type"), [1, 3, 2])

    def test_date_both_ways(self):
        rows = [row(1, date="2024-03-01"), row(2, date="2023-12-31"), row(3, date="2024-01-15")]
        self.assertEqual(order(rows, "date"), [2, 3, 1])
        self.assertEqual(order(rows, "-date"), [1, 3, 2])

    def test_equal_keys_keep_incoming_order_in_both_directions(self):
        rows = [
            row(5, counterparty_name="Andes", total=Decimal("100"), date="2024-01-01"),
            row(3, counterparty_name="andes", total=Decimal("100"), date="2024-01-01"),
            row(9, counterparty_name="ÁNDES", total=Decimal("100"), date="2024-01-01"),
        ]
        for ordering in ("client", "-client", "total", "-total", "date", "-date", "paid", "-paid"):
            self.assertEqual(order(rows, ordering), [5, 3, 9], ordering)
