"""
Tenancy plumbing: token issuing, the request middleware and per-section grants.
"""
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient, APIRequestFactory, force_authenticate
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from common.permissions import section_allows
from common.roles import TenantRole
from invoices.api import InvoiceListCreateView
from tenants.models import Tenant, TenantUser

User = get_user_model()

INVOICES_URL = "/api/v1/invoices/"
TOKEN_URL = "/api/v1/auth/token/"


class SectionRuleTests(SimpleTestCase):
    def test_specific_grant(self):
        self.assertTrue(section_allows(["invoices:read"], "invoices", "read"))
        self.assertFalse(section_allows(["invoices:read"], "invoices", "create"))

    def test_wildcard_grant(self):
        for action in ("read", "create", "update", "delete"):
            self.assertTrue(section_allows(["invoices:*"], "invoices", action))

    def test_bare_section_name_grants_everything(self):
        self.assertTrue(section_allows(["clients"], "clients", "delete"))
        self.assertFalse(section_allows(["clients"], "invoices", "read"))

    def test_nothing_granted(self):
        self.assertFalse(section_allows([], "invoices", "read"))
        self.assertFalse(section_allows(None, "invoices", "read"))


class SectionAccessTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.tenant = Tenant.objects.create(name="Uno", code="uno")

    def _member(self, username, role, sections):
        user = User.objects.create_user(username=username, password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=user, role=role, allowed_sections=sections)
        return user

    def _call(self, user, method="get", data=None):
        if method == "post":
            request = self.factory.post(INVOICES_URL, data or {}, format="json")
        else:
            request = self.factory.get(INVOICES_URL)
        force_authenticate(request, user=user)
        request.tenant = self.tenant
        return InvoiceListCreateView.as_view()(request)

    def test_read_grant_allows_list_but_not_issue(self):
        manager = self._member("manager", TenantRole.MANAGER, ["invoices:read"])
        self.assertEqual(self._call(manager).status_code, 200)
        response = self._call(manager, "post", {"number": "F-1", "date": "2024-01-01", "type": "SALE"})
        self.assertEqual(response.status_code, 403)

    def test_other_section_blocks_invoices(self):
        manager = self._member("manager", TenantRole.MANAGER, ["clients"])
        self.assertEqual(self._call(manager).status_code, 403)

    def test_empty_list_is_limited_by_role_only(self):
        manager = self._member("manager", TenantRole.MANAGER, [])
        self.assertEqual(self._call(manager).status_code, 200)
        # role allows writes, so the payload gets validated
        self.assertEqual(self._call(manager, "post", {}).status_code, 400)

    def test_owner_ignores_sections(self):
        owner = self._member("owner", TenantRole.OWNER, ["clients"])
        self.assertEqual(self._call(owner).status_code, 200)


class TokenAndMiddlewareTests(TestCase):
    def setUp(self):
        self.api = APIClient()
        self.tenant = Tenant.objects.create(name="Constructora Uno", code="uno", rut="11111111-1")
        self.other = Tenant.objects.create(name="Constructora Dos", code="dos")
        self.user = User.objects.create_user(username="contador", password="test-pass")
        TenantUser.objects.create(
            tenant=self.tenant, user=self.user, role=TenantRole.ACCOUNTANT, allowed_sections=["invoices:*"],
        )

    def _login(self, **extra):
        payload = {"username": "contador", "password": "test-pass", **extra}
        return self.api.post(TOKEN_URL, payload, format="json")

    def _get(self, token=None, **headers):
        if token:
            headers["HTTP_AUTHORIZATION"] = f"Bearer {token}"
        return self.api.get(INVOICES_URL, **headers)

    def test_login_embeds_company_and_opens_invoices(self):
        response = self._login(tenant_code="uno")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["tenant"]["code"], "uno")
        self.assertEqual(response.data["tenant"]["rut"], "11111111-1")
        self.assertEqual(response.data["role"], TenantRole.ACCOUNTANT)
        self.assertEqual(response.data["allowed_sections"], ["invoices:*"])

        access = AccessToken(response.data["access"])
        self.assertEqual(access["tenant_id"], self.tenant.id)
        self.assertEqual(access["tenant_code"], "uno")
        self.assertEqual(access["role"], TenantRole.ACCOUNTANT)

        listing = self._get(response.data["access"])
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.json()["count"], 0)

    def test_login_without_code_picks_first_membership(self):
        response = self._login()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["tenant"]["id"], self.tenant.id)

    def test_login_for_foreign_company_is_rejected(self):
        self.assertEqual(self._login(tenant_code="dos").status_code, 401)
        self.assertEqual(self._login(tenant_code="nope").status_code, 401)

    def test_missing_token_is_401(self):
        response = self._get()
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Authentication required")

    def test_garbage_token_is_401(self):
        response = self._get("not-a-jwt")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid token")

    def test_header_fallback_when_token_has_no_company(self):
        access = str(RefreshToken.for_user(self.user).access_token)
        self.assertEqual(self._get(access, HTTP_X_TENANT_CODE="uno").status_code, 200)
        self.assertEqual(self._get(access, HTTP_X_TENANT_ID=str(self.tenant.id)).status_code, 200)

    def test_no_company_anywhere_is_403(self):
        access = str(RefreshToken.for_user(self.user).access_token)
        response = self._get(access)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "Invalid tenant")

    def test_non_member_company_is_403(self):
        access = str(RefreshToken.for_user(self.user).access_token)
        response = self._get(access, HTTP_X_TENANT_CODE="dos")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "User not a member of tenant")

    def test_company_deactivated_after_login_is_403(self):
        access = self._login(tenant_code="uno").data["access"]
        Tenant.objects.filter(pk=self.tenant.pk).update(is_active=False)
        response = self._get(access)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "Invalid tenant")

    def test_revoked_membership_is_403(self):
        access = self._login(tenant_code="uno").data["access"]
        TenantUser.objects.filter(user=self.user).update(is_active=False)
        self.assertEqual(self._get(access).status_code, 403)
