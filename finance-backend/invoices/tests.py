"""
Invoice API: issuing, credit-note cancellation, grouped list, delete vs cancel,
chain detail, PDF and CSV export.
"""
from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from clients.models import Client
from common.roles import TenantRole
from invoices.api import (
    InvoiceChainView,
    InvoiceDetailView,
    InvoiceExportView,
    InvoiceListCreateView,
    InvoicePDFView,
)
from invoices.models import Invoice, InvoiceStatus, InvoiceType
from invoices.services.documents import issue_invoice
from purchasing.models import PurchaseOrder, Supplier
from tenants.models import Tenant, TenantUser


User = get_user_model()


class InvoiceApiTestBase(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.tenant = Tenant.objects.create(name="Constructora Uno", code="uno", rut="11111111-1")
        self.other_tenant = Tenant.objects.create(name="Constructora Dos", code="dos")
        self.user = User.objects.create_user(username="contador", password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=self.user, role=TenantRole.ACCOUNTANT)
        self.client_a = Client.objects.create(tenant=self.tenant, rut="12345678-5", name="Andes SpA")
        self.client_b = Client.objects.create(tenant=self.tenant, rut="6-K", name="Bosque Ltda")
        self.foreign_client = Client.objects.create(tenant=self.other_tenant, rut="12345678-5", name="Ajeno")

    def _issue(self, number, day, type=InvoiceType.SALE, net=100000, related=None, client=None, tenant=None):
        return issue_invoice(tenant or self.tenant, {
            "number": number,
            "date": day,
            "type": type,
            "client": client or self.client_a,
            "net_amount": Decimal(net),
            "related_invoice": related,
        })

    def _call(self, view, method="get", path="/api/v1/invoices/", data=None, user=None, tenant=None, **kwargs):
        maker = getattr(self.factory, method)
        if method in ("post", "put"):
            request = maker(path, data or {}, format="json")
        else:
            request = maker(path, data or {})
        force_authenticate(request, user=user or self.user)
        request.tenant = tenant or self.tenant
        return view.as_view()(request, **kwargs)


class IssueInvoiceTests(InvoiceApiTestBase):
    def test_issue_derives_iva_and_total(self):
        response = self._call(InvoiceListCreateView, "post", data={
            "number": "F-1",
            "date": "2024-01-05",
            "type": "SALE",
            "client": self.client_a.id,
            "net_amount": "1050",
        })
        self.assertEqual(response.status_code, 201, response.data)
        invoice = Invoice.objects.get(pk=response.data["id"])
        self.assertEqual(invoice.tenant, self.tenant)
        self.assertEqual(invoice.tax_amount, Decimal("200"))
        self.assertEqual(invoice.total_amount, Decimal("1250"))
        self.assertEqual(invoice.created_by, self.user)

    def test_issue_with_items_uses_item_totals(self):
        response = self._call(InvoiceListCreateView, "post", data={
            "number": "F-2",
            "date": "2024-01-05",
            "client": self.client_a.id,
            "items": [
                {"description": "Hormigón", "quantity": "2", "unit_price": "50000"},
                {"description": "Flete", "quantity": "1", "unit_price": "10000"},
            ],
        })
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(Decimal(response.data["net_amount"]), Decimal("110000"))
        self.assertEqual(Decimal(response.data["tax_amount"]), Decimal("20900"))
        self.assertEqual(len(response.data["items"]), 2)

    def test_client_supplied_id_is_ignored(self):
        response = self._call(InvoiceListCreateView, "post", data={
            "id": 9999, "number": "F-3", "date": "2024-01-05",
            "client": self.client_a.id, "net_amount": "1000",
        })
        self.assertEqual(response.status_code, 201, response.data)
        self.assertNotEqual(response.data["id"], 9999)

    def test_credit_note_cancels_referenced_invoice(self):
        original = self._issue("F-100", date(2024, 1, 5))
        response = self._call(InvoiceListCreateView, "post", data={
            "number": "NC-1",
            "date": "2024-01-10",
            "type": "CREDIT_NOTE",
            "client": self.client_a.id,
            "net_amount": "100000",
            "related_invoice": original.id,
        })
        self.assertEqual(response.status_code, 201, response.data)
        original.refresh_from_db()
        self.assertEqual(original.status, InvoiceStatus.CANCELLED)

    def test_debit_note_does_not_cancel(self):
        original = self._issue("F-100", date(2024, 1, 5))
        self._issue("ND-1", date(2024, 1, 6), type=InvoiceType.DEBIT_NOTE, related=original)
        original.refresh_from_db()
        self.assertEqual(original.status, InvoiceStatus.ISSUED)

    def test_foreign_client_is_rejected(self):
        response = self._call(InvoiceListCreateView, "post", data={
            "number": "F-4", "date": "2024-01-05",
            "client": self.foreign_client.id, "net_amount": "1000",
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("client", response.data)

    def test_missing_amounts_is_rejected(self):
        response = self._call(InvoiceListCreateView, "post", data={
            "number": "F-5", "date": "2024-01-05", "client": self.client_a.id,
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("net_amount", response.data)

    def test_worker_cannot_issue(self):
        worker = User.objects.create_user(username="bodega", password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=worker, role=TenantRole.WORKER)
        response = self._call(InvoiceListCreateView, "post", user=worker, data={
            "number": "F-6", "date": "2024-01-05", "client": self.client_a.id, "net_amount": "1000",
        })
        self.assertEqual(response.status_code, 403)
        listing = self._call(InvoiceListCreateView, user=worker)
        self.assertEqual(listing.status_code, 200)


class InvoiceListTests(InvoiceApiTestBase):
    def setUp(self):
        super().setUp()
        self.f100 = self._issue("F-100", date(2024, 1, 5), net=100000)
        self.nc1 = self._issue("NC-1", date(2024, 1, 10), type=InvoiceType.CREDIT_NOTE, net=100000, related=self.f100)
        self.f101 = self._issue("F-101", date(2024, 1, 12), net=90000, related=self.nc1)
        self.nc9 = self._issue("NC-9", date(2024, 2, 1), type=InvoiceType.CREDIT_NOTE, net=5000, client=self.client_b)
        self._issue("F-1", date(2024, 1, 1), tenant=self.other_tenant, client=self.foreign_client)

    def _rows(self, response):
        return [(row["invoice"]["number"], [c["number"] for c in row["children"]]) for row in response.data["results"]]

    def test_credit_note_match_surfaces_master_with_children(self):
        response = self._call(InvoiceListCreateView, data={"search": "NC-1"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._rows(response), [("F-100", ["NC-1", "F-101"])])

    def test_reinvoice_match_roots_itself_without_children(self):
        response = self._call(InvoiceListCreateView, data={"search": "F-101"})
        self.assertEqual(self._rows(response), [("F-101", [])])

    def test_orphan_credit_note_is_listed(self):
        response = self._call(InvoiceListCreateView, data={"type": "CREDIT_NOTE"})
        self.assertEqual(self._rows(response), [("NC-9", []), ("F-100", ["NC-1", "F-101"])])

    def test_full_list_has_no_duplicates_and_is_tenant_scoped(self):
        response = self._call(InvoiceListCreateView, data={"ordering": "folio"})
        numbers = [n for n, _ in self._rows(response)]
        self.assertEqual(numbers, ["NC-9", "F-100", "F-101"])
        self.assertEqual(response.data["count"], 3)
        self.assertEqual(response.data["currency"], "CLP")

    def test_stats_sum_matched_invoices(self):
        response = self._call(InvoiceListCreateView, data={"client_id": self.client_b.id})
        self.assertEqual(response.data["stats"]["net"], Decimal("5000"))
        self.assertEqual(response.data["stats"]["iva"], Decimal("950"))
        self.assertEqual(response.data["stats"]["total"], Decimal("5950"))

    def test_search_by_client_rut_with_dots(self):
        response = self._call(InvoiceListCreateView, data={"search": "6-K"})
        self.assertEqual([n for n, _ in self._rows(response)], ["NC-9"])
        response = self._call(InvoiceListCreateView, data={"search": "12.345.678"})
        self.assertEqual(sorted(n for n, _ in self._rows(response)), ["F-100", "F-101"])

    def test_amount_and_date_filters(self):
        response = self._call(InvoiceListCreateView, data={"min_amount": "110000", "date_to": "2024-01-31"})
        self.assertEqual([n for n, _ in self._rows(response)], ["F-100"])

    def test_unknown_ordering_is_400(self):
        response = self._call(InvoiceListCreateView, data={"ordering": "-colour"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("ordering", response.data)


class InvoiceDetailTests(InvoiceApiTestBase):
    def test_delete_standalone_invoice(self):
        invoice = self._issue("F-1", date(2024, 1, 1))
        response = self._call(InvoiceDetailView, "delete", path=f"/api/v1/invoices/{invoice.id}", pk=invoice.id)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Invoice.objects.filter(pk=invoice.id).exists())

    def test_delete_chained_invoice_cancels_it(self):
        original = self._issue("F-1", date(2024, 1, 1))
        note = self._issue("ND-1", date(2024, 1, 2), type=InvoiceType.DEBIT_NOTE, related=original)
        response = self._call(InvoiceDetailView, "delete", path=f"/api/v1/invoices/{note.id}", pk=note.id)
        self.assertEqual(response.status_code, 200)
        note.refresh_from_db()
        self.assertEqual(note.status, InvoiceStatus.CANCELLED)

    def test_other_company_invoice_is_404(self):
        foreign = self._issue("F-1", date(2024, 1, 1), tenant=self.other_tenant, client=self.foreign_client)
        for method in ("get", "delete"):
            response = self._call(InvoiceDetailView, method, path=f"/api/v1/invoices/{foreign.id}", pk=foreign.id)
            self.assertEqual(response.status_code, 404)
        self.assertTrue(Invoice.objects.filter(pk=foreign.id).exists())

    def test_put_replaces_record_and_recomputes(self):
        invoice = self._issue("F-1", date(2024, 1, 1), net=1000)
        response = self._call(InvoiceDetailView, "put", path=f"/api/v1/invoices/{invoice.id}", pk=invoice.id, data={
            "number": "F-1A", "date": "2024-01-03", "type": "SALE",
            "client": self.client_b.id, "net_amount": "2000",
        })
        self.assertEqual(response.status_code, 200, response.data)
        invoice.refresh_from_db()
        self.assertEqual(invoice.number, "F-1A")
        self.assertEqual(invoice.client, self.client_b)
        self.assertEqual(invoice.total_amount, Decimal("2380"))

    def test_put_rejects_self_reference(self):
        invoice = self._issue("F-1", date(2024, 1, 1))
        response = self._call(InvoiceDetailView, "put", path=f"/api/v1/invoices/{invoice.id}", pk=invoice.id, data={
            "number": "F-1", "date": "2024-01-01", "client": self.client_a.id,
            "net_amount": "1000", "related_invoice": invoice.id,
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("related_invoice", response.data)

    def _put(self, invoice, **fields):
        data = {"number": invoice.number, "date": invoice.date.isoformat(), "type": invoice.type,
                "client": self.client_a.id, "net_amount": "1000"}
        data.update(fields)
        return self._call(InvoiceDetailView, "put", path=f"/api/v1/invoices/{invoice.id}", pk=invoice.id, data=data)

    def _status(self, invoice):
        invoice.refresh_from_db()
        return invoice.status

    def test_changing_type_to_credit_note_cancels_target(self):
        original = self._issue("F-1", date(2024, 1, 1))
        note = self._issue("ND-1", date(2024, 1, 2), type=InvoiceType.DEBIT_NOTE, related=original)
        self.assertEqual(self._status(original), InvoiceStatus.ISSUED)
        response = self._put(note, type="CREDIT_NOTE", related_invoice=original.id)
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(self._status(original), InvoiceStatus.CANCELLED)

    def test_retargeted_credit_note_reinstates_previous_target(self):
        first = self._issue("F-1", date(2024, 1, 1))
        second = self._issue("F-2", date(2024, 1, 1))
        note = self._issue("NC-1", date(2024, 1, 3), type=InvoiceType.CREDIT_NOTE, related=first)
        self.assertEqual(self._status(first), InvoiceStatus.CANCELLED)
        response = self._put(note, related_invoice=second.id)
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(self._status(first), InvoiceStatus.ISSUED)
        self.assertEqual(self._status(second), InvoiceStatus.CANCELLED)

    def test_previous_target_stays_cancelled_while_another_note_credits_it(self):
        first = self._issue("F-1", date(2024, 1, 1))
        second = self._issue("F-2", date(2024, 1, 1))
        note = self._issue("NC-1", date(2024, 1, 3), type=InvoiceType.CREDIT_NOTE, related=first)
        self._issue("NC-2", date(2024, 1, 4), type=InvoiceType.CREDIT_NOTE, related=first)
        self._put(note, related_invoice=second.id)
        self.assertEqual(self._status(first), InvoiceStatus.CANCELLED)

    def test_credit_note_turned_debit_note_restores_paid_target(self):
        original = self._issue("F-1", date(2024, 1, 1))
        Invoice.objects.filter(pk=original.pk).update(is_paid=True)
        note = self._issue("NC-1", date(2024, 1, 3), type=InvoiceType.CREDIT_NOTE, related=original)
        self.assertEqual(self._status(original), InvoiceStatus.CANCELLED)
        self._put(note, type="DEBIT_NOTE", related_invoice=original.id)
        self.assertEqual(self._status(original), InvoiceStatus.PAID)

    def test_unchanged_credit_note_leaves_target_alone(self):
        original = self._issue("F-1", date(2024, 1, 1))
        note = self._issue("NC-1", date(2024, 1, 3), type=InvoiceType.CREDIT_NOTE, related=original)
        self._put(note, related_invoice=original.id, net_amount="500")
        self.assertEqual(self._status(original), InvoiceStatus.CANCELLED)


class InvoiceChainAndExportTests(InvoiceApiTestBase):
    def setUp(self):
        super().setUp()
        self.f12 = self._issue("F-12", date(2024, 2, 1))
        self.f7 = self._issue("F-7", date(2024, 2, 1), type=InvoiceType.DEBIT_NOTE, related=self.f12)

    def test_chain_is_chronological_with_numeric_folio_tie_break(self):
        response = self._call(InvoiceChainView, path=f"/api/v1/invoices/{self.f12.id}/chain", pk=self.f12.id)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([r["number"] for r in response.data["results"]], ["F-7", "F-12"])
        self.assertEqual(response.data["master_id"], self.f7.id)

    def test_chain_of_unknown_invoice_is_404(self):
        response = self._call(InvoiceChainView, path="/api/v1/invoices/999999/chain", pk=999999)
        self.assertEqual(response.status_code, 404)

    def test_pdf_download(self):
        response = self._call(InvoicePDFView, path=f"/api/v1/invoices/{self.f12.id}/pdf", pk=self.f12.id)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn("Factura_F-12_2024-02-01.pdf", response["Content-Disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_csv_export(self):
        response = self._call(InvoiceExportView, path="/api/v1/invoices/export", data={"type": "DEBIT_NOTE"})
        self.assertEqual(response.status_code, 200)
        lines = response.content.decode().strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("ID,Folio,Date"))
        self.assertIn("F-7", lines[1])

    def test_pdf_escapes_company_markup(self):
        Tenant.objects.filter(pk=self.tenant.pk).update(name="Pérez & Hijos <Ltda>", rut="76.543.210-<K>")
        tenant = Tenant.objects.get(pk=self.tenant.pk)
        response = self._call(InvoicePDFView, path=f"/api/v1/invoices/{self.f12.id}/pdf", pk=self.f12.id, tenant=tenant)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.content.startswith(b"%PDF"))


class PurchaseInvoiceTests(InvoiceApiTestBase):
    def setUp(self):
        super().setUp()
        self.supplier = Supplier.objects.create(tenant=self.tenant, rut="76543210-3", name="Ferretería Sur")
        self.other_supplier = Supplier.objects.create(tenant=self.tenant, rut="6-K", name="Áridos Norte")
        self.po = PurchaseOrder.objects.create(
            tenant=self.tenant, number="OC-1", supplier=self.supplier, date=date(2024, 1, 2),
        )

    def _post(self, **fields):
        data = {"number": "FC-1", "date": "2024-01-05", "type": "PURCHASE", "net_amount": "1000"}
        data.update(fields)
        return self._call(InvoiceListCreateView, "post", data=data)

    def test_purchase_invoice_links_supplier_and_order(self):
        response = self._post(supplier=self.supplier.id, purchase_order=self.po.id)
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["counterparty_name"], "Ferretería Sur")
        self.assertEqual(response.data["counterparty_rut"], "76543210-3")
        self.assertEqual(response.data["purchase_order_ref"], "OC-1")
        self.assertEqual(list(self.po.invoices.values_list("number", flat=True)), ["FC-1"])

    def test_purchase_requires_supplier(self):
        response = self._post(client=self.client_a.id)
        self.assertEqual(response.status_code, 400)
        self.assertIn("supplier", response.data)

    def test_sale_requires_client(self):
        response = self._post(type="SALE", supplier=self.supplier.id)
        self.assertEqual(response.status_code, 400)
        self.assertIn("client", response.data)

    def test_client_and_supplier_together_is_rejected(self):
        response = self._post(type="CREDIT_NOTE", client=self.client_a.id, supplier=self.supplier.id)
        self.assertEqual(response.status_code, 400)

    def test_order_of_another_supplier_is_rejected(self):
        response = self._post(supplier=self.other_supplier.id, purchase_order=self.po.id)
        self.assertEqual(response.status_code, 400)
        self.assertIn("purchase_order", response.data)

    def test_foreign_supplier_is_rejected(self):
        foreign = Supplier.objects.create(tenant=self.other_tenant, rut="76543210-3", name="Ajeno")
        response = self._post(supplier=foreign.id)
        self.assertEqual(response.status_code, 400)
        self.assertIn("supplier", response.data)

    def test_list_search_and_filter_by_supplier(self):
        self._issue("F-1", date(2024, 1, 1))
        self._post(supplier=self.supplier.id)
        self._post(number="FC-2", supplier=self.other_supplier.id)
        response = self._call(InvoiceListCreateView, data={"search": "ferretería"})
        self.assertEqual([row["invoice"]["number"] for row in response.data["results"]], ["FC-1"])
        response = self._call(InvoiceListCreateView, data={"supplier_id": self.other_supplier.id})
        self.assertEqual([row["invoice"]["number"] for row in response.data["results"]], ["FC-2"])
        response = self._call(InvoiceListCreateView, data={"ordering": "client"})
        self.assertEqual(
            [row["invoice"]["counterparty_name"] for row in response.data["results"]],
            ["Andes SpA", "Áridos Norte", "Ferretería Sur"],
        )

    def test_purchase_invoice_pdf_and_csv(self):
        invoice = self._post(supplier=self.supplier.id, purchase_order=self.po.id).data
        response = self._call(InvoicePDFView, path=f"/api/v1/invoices/{invoice['id']}/pdf", pk=invoice["id"])
        self.assertEqual(response.status_code, 200)
        response = self._call(InvoiceExportView, path="/api/v1/invoices/export", data={"type": "PURCHASE"})
        lines = response.content.decode().strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn("Ferretería Sur", lines[1])
        self.assertTrue(lines[1].rstrip().endswith("OC-1"))
