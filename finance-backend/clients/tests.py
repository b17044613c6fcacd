from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from clients.models import Client
from clients.validators import normalize_rut, rut_check_digit
from clients.views import ClientViewSet
from common.roles import TenantRole
from tenants.models import Tenant, TenantUser


class RutValidatorTests(SimpleTestCase):
    def test_check_digit(self):
        self.assertEqual(rut_check_digit(12345678), "5")
        self.assertEqual(rut_check_digit(11111111), "1")
        self.assertEqual(rut_check_digit(6), "K")

    def test_normalize_accepts_common_spellings(self):
        self.assertEqual(normalize_rut("12.345.678-5"), "12345678-5")
        self.assertEqual(normalize_rut(" 12345678-5 "), "12345678-5")
        self.assertEqual(normalize_rut("6-k"), "6-K")

    def test_wrong_check_digit(self):
        with self.assertRaises(ValidationError):
            normalize_rut("12345678-9")

    def test_bad_format(self):
        for value in ("", "12345678", "abc-1", "123456789-0"):
            with self.assertRaises(ValidationError):
                normalize_rut(value)


class ClientApiTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.tenant = Tenant.objects.create(name="Uno", code="uno")
        self.other = Tenant.objects.create(name="Dos", code="dos")
        self.user = get_user_model().objects.create_user(username="owner", password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=self.user, role=TenantRole.OWNER)
        Client.objects.create(tenant=self.other, rut="11111111-1", name="Ajeno")

    def _post(self, data):
        request = self.factory.post("/api/v1/clients/", data, format="json")
        force_authenticate(request, user=self.user)
        request.tenant = self.tenant
        return ClientViewSet.as_view({"post": "create"})(request)

    def test_create_normalizes_rut_and_sets_tenant(self):
        response = self._post({"rut": "12.345.678-5", "name": "Andes SpA"})
        self.assertEqual(response.status_code, 201, response.data)
        client = Client.objects.get(pk=response.data["id"])
        self.assertEqual(client.rut, "12345678-5")
        self.assertEqual(client.tenant, self.tenant)

    def test_invalid_rut_is_400(self):
        response = self._post({"rut": "12345678-9", "name": "Andes SpA"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("rut", response.data)

    def test_rut_is_unique_per_company_only(self):
        self.assertEqual(self._post({"rut": "11111111-1", "name": "Propio"}).status_code, 201)
        response = self._post({"rut": "11.111.111-1", "name": "Repetido"})
        self.assertEqual(response.status_code, 400)

    def test_list_is_tenant_scoped(self):
        Client.objects.create(tenant=self.tenant, rut="6-K", name="Bosque")
        request = self.factory.get("/api/v1/clients/")
        force_authenticate(request, user=self.user)
        request.tenant = self.tenant
        response = ClientViewSet.as_view({"get": "list"})(request)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([c["name"] for c in response.data["results"]], ["Bosque"])

    def _patch(self, user, pk, data):
        request = self.factory.patch(f"/api/v1/clients/{pk}/", data, format="json")
        force_authenticate(request, user=user)
        request.tenant = self.tenant
        return ClientViewSet.as_view({"patch": "partial_update"})(request, pk=pk)

    def _member(self, username, role, sections=None):
        user = get_user_model().objects.create_user(username=username, password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=user, role=role, allowed_sections=sections or [])
        return user

    def test_worker_cannot_rename_client(self):
        client = Client.objects.create(tenant=self.tenant, rut="6-K", name="Bosque")
        worker = self._member("worker", TenantRole.WORKER)
        response = self._patch(worker, client.pk, {"name": "Renombrado"})
        self.assertEqual(response.status_code, 403)
        client.refresh_from_db()
        self.assertEqual(client.name, "Bosque")

    def test_accountant_can_rename_client(self):
        client = Client.objects.create(tenant=self.tenant, rut="6-K", name="Bosque")
        accountant = self._member("accountant", TenantRole.ACCOUNTANT)
        response = self._patch(accountant, client.pk, {"name": "Bosque Ltda"})
        self.assertEqual(response.status_code, 200, response.data)
        client.refresh_from_db()
        self.assertEqual(client.name, "Bosque Ltda")

    def test_sections_limit_client_writes(self):
        client = Client.objects.create(tenant=self.tenant, rut="6-K", name="Bosque")
        accountant = self._member("reader", TenantRole.ACCOUNTANT, sections=["clients:read"])
        response = self._patch(accountant, client.pk, {"name": "Otro"})
        self.assertEqual(response.status_code, 403)
