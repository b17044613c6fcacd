from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from common.roles import TenantRole
from invoices.services.documents import issue_invoice
from purchasing.models import PurchaseOrder, PurchaseOrderStatus, Supplier
from purchasing.views import PurchaseOrderViewSet, SupplierViewSet
from tenants.models import Tenant, TenantUser

User = get_user_model()


class PurchasingApiTestBase(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.tenant = Tenant.objects.create(name="Uno", code="uno")
        self.other = Tenant.objects.create(name="Dos", code="dos")
        self.user = User.objects.create_user(username="contador", password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=self.user, role=TenantRole.ACCOUNTANT)
        self.supplier = Supplier.objects.create(tenant=self.tenant, rut="76543210-3", name="Ferretería Sur")

    def _member(self, username, role):
        user = User.objects.create_user(username=username, password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=user, role=role)
        return user

    def _call(self, viewset, actions, method="get", path="/", data=None, user=None, **kwargs):
        maker = getattr(self.factory, method)
        if method in ("post", "put", "patch"):
            request = maker(path, data or {}, format="json")
        else:
            request = maker(path, data or {})
        force_authenticate(request, user=user or self.user)
        request.tenant = self.tenant
        return viewset.as_view(actions)(request, **kwargs)


class SupplierApiTests(PurchasingApiTestBase):
    def _post(self, data, user=None):
        return self._call(SupplierViewSet, {"post": "create"}, "post", "/api/v1/suppliers/", data, user=user)

    def test_create_normalizes_rut(self):
        response = self._post({"rut": "12.345.678-5", "name": "Hormigones Andes", "category": "Materiales"})
        self.assertEqual(response.status_code, 201, response.data)
        supplier = Supplier.objects.get(pk=response.data["id"])
        self.assertEqual(supplier.rut, "12345678-5")
        self.assertEqual(supplier.tenant, self.tenant)

    def test_invalid_and_duplicate_rut(self):
        self.assertEqual(self._post({"rut": "12345678-9", "name": "Malo"}).status_code, 400)
        response = self._post({"rut": "76.543.210-3", "name": "Repetido"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("rut", response.data)

    def test_same_rut_in_another_company_is_fine(self):
        Supplier.objects.create(tenant=self.other, rut="12345678-5", name="Ajeno")
        self.assertEqual(self._post({"rut": "12345678-5", "name": "Propio"}).status_code, 201)

    def test_worker_cannot_create_or_edit(self):
        worker = self._member("worker", TenantRole.WORKER)
        self.assertEqual(self._post({"rut": "12345678-5", "name": "X"}, user=worker).status_code, 403)
        response = self._call(
            SupplierViewSet, {"patch": "partial_update"}, "patch",
            f"/api/v1/suppliers/{self.supplier.pk}/", {"name": "Otro"}, user=worker, pk=self.supplier.pk,
        )
        self.assertEqual(response.status_code, 403)
        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.name, "Ferretería Sur")

    def test_list_is_tenant_scoped(self):
        Supplier.objects.create(tenant=self.other, rut="6-K", name="Ajeno")
        response = self._call(SupplierViewSet, {"get": "list"}, path="/api/v1/suppliers/")
        self.assertEqual([s["name"] for s in response.data["results"]], ["Ferretería Sur"])


class PurchaseOrderApiTests(PurchasingApiTestBase):
    def _create(self, **fields):
        data = {
            "supplier": self.supplier.id,
            "date": "2024-03-01",
            "items": [
                {"description": "Cemento 25kg", "quantity": "10", "unit_price": "5000"},
                {"description": "Flete", "quantity": "1", "unit_price": "10500"},
            ],
        }
        data.update(fields)
        return self._call(PurchaseOrderViewSet, {"post": "create"}, "post", "/api/v1/purchase-orders/", data)

    def _approve(self, po_id, user=None):
        return self._call(
            PurchaseOrderViewSet, {"post": "approve"}, "post",
            f"/api/v1/purchase-orders/{po_id}/approve/", user=user, pk=po_id,
        )

    def test_create_derives_amounts_and_number(self):
        response = self._create()
        self.assertEqual(response.status_code, 201, response.data)
        po = PurchaseOrder.objects.get(pk=response.data["id"])
        self.assertEqual(po.tenant, self.tenant)
        self.assertEqual(po.status, PurchaseOrderStatus.PENDING)
        self.assertEqual(po.net_amount, Decimal("60500"))
        self.assertEqual(po.tax_amount, Decimal("11495"))
        self.assertEqual(po.total_amount, Decimal("71995"))
        self.assertEqual(po.number, f"UNO-OC-{po.id:06d}")
        self.assertEqual(po.created_by, self.user)
        self.assertEqual(response.data["supplier_name"], "Ferretería Sur")
        self.assertEqual(len(response.data["items"]), 2)

    def test_items_are_required(self):
        response = self._create(items=[])
        self.assertEqual(response.status_code, 400)
        self.assertIn("items", response.data)

    def test_foreign_supplier_is_rejected(self):
        foreign = Supplier.objects.create(tenant=self.other, rut="6-K", name="Ajeno")
        response = self._create(supplier=foreign.id)
        self.assertEqual(response.status_code, 400)
        self.assertIn("supplier", response.data)

    def test_cannot_create_approved(self):
        response = self._create(status="APPROVED")
        self.assertEqual(response.status_code, 400)
        self.assertIn("status", response.data)

    def test_patch_items_recomputes(self):
        po_id = self._create().data["id"]
        response = self._call(
            PurchaseOrderViewSet, {"patch": "partial_update"}, "patch", f"/api/v1/purchase-orders/{po_id}/",
            {"items": [{"description": "Arena", "quantity": "2", "unit_price": "1000"}]}, pk=po_id,
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(Decimal(response.data["total_amount"]), Decimal("2380"))
        self.assertEqual([i["description"] for i in response.data["items"]], ["Arena"])

    def test_manager_approves_and_accountant_cannot(self):
        po_id = self._create().data["id"]
        self.assertEqual(self._approve(po_id).status_code, 403)
        manager = self._member("jefe", TenantRole.MANAGER)
        response = self._approve(po_id, user=manager)
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["status"], PurchaseOrderStatus.APPROVED)
        self.assertIsNotNone(response.data["approved_at"])
        self.assertEqual(self._approve(po_id, user=manager).status_code, 400)

    def test_approved_order_only_accepts_status_and_notes(self):
        po_id = self._create().data["id"]
        PurchaseOrder.objects.filter(pk=po_id).update(status=PurchaseOrderStatus.APPROVED)
        path = f"/api/v1/purchase-orders/{po_id}/"
        response = self._call(PurchaseOrderViewSet, {"patch": "partial_update"}, "patch", path,
                              {"items": [{"description": "Más", "quantity": "1", "unit_price": "1"}]}, pk=po_id)
        self.assertEqual(response.status_code, 400)
        response = self._call(PurchaseOrderViewSet, {"patch": "partial_update"}, "patch", path,
                              {"status": "CANCELLED", "notes": "Proveedor sin stock"}, pk=po_id)
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(PurchaseOrder.objects.get(pk=po_id).status, PurchaseOrderStatus.CANCELLED)

    def test_order_referenced_by_invoice_cannot_be_deleted(self):
        po_id = self._create().data["id"]
        issue_invoice(self.tenant, {
            "number": "FC-1", "date": date(2024, 3, 5), "type": "PURCHASE",
            "supplier": self.supplier, "purchase_order": PurchaseOrder.objects.get(pk=po_id),
            "net_amount": Decimal("60500"),
        })
        owner = self._member("owner", TenantRole.OWNER)
        response = self._call(PurchaseOrderViewSet, {"delete": "destroy"}, "delete",
                              f"/api/v1/purchase-orders/{po_id}/", user=owner, pk=po_id)
        self.assertEqual(response.status_code, 400)
        self.assertTrue(PurchaseOrder.objects.filter(pk=po_id).exists())

    def test_list_filters_by_status(self):
        self._create()
        PurchaseOrder.objects.create(tenant=self.tenant, supplier=self.supplier, date=date(2024, 1, 1),
                                     status=PurchaseOrderStatus.CANCELLED, number="OC-OLD")
        other_supplier = Supplier.objects.create(tenant=self.other, rut="6-K", name="Ajeno")
        PurchaseOrder.objects.create(tenant=self.other, supplier=other_supplier, date=date(2024, 1, 1), number="OC-X")
        response = self._call(PurchaseOrderViewSet, {"get": "list"}, path="/api/v1/purchase-orders/",
                              data={"status": "CANCELLED"})
        self.assertEqual([po["number"] for po in response.data["results"]], ["OC-OLD"])
        response = self._call(PurchaseOrderViewSet, {"get": "list"}, path="/api/v1/purchase-orders/")
        self.assertEqual(response.data["count"], 2)
