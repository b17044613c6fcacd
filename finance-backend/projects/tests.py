from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from clients.models import Client
from common.roles import TenantRole
from projects.models import CostCenter, Project
from projects.views import CostCenterViewSet, ProjectViewSet
from tenants.models import Tenant, TenantUser


class ProjectApiTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.tenant = Tenant.objects.create(name="Uno", code="uno")
        self.other = Tenant.objects.create(name="Dos", code="dos")
        self.user = get_user_model().objects.create_user(username="manager", password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=self.user, role=TenantRole.MANAGER)
        self.foreign_client = Client.objects.create(tenant=self.other, rut="6-K", name="Ajeno")

    def _post(self, viewset, path, data):
        request = self.factory.post(path, data, format="json")
        force_authenticate(request, user=self.user)
        request.tenant = self.tenant
        return viewset.as_view({"post": "create"})(request)

    def test_create_project(self):
        response = self._post(ProjectViewSet, "/api/v1/projects/", {
            "name": "Edificio Costanera", "budget": "1000000",
            "start_date": "2024-01-01", "end_date": "2024-12-31",
        })
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(Project.objects.get(pk=response.data["id"]).tenant, self.tenant)

    def test_end_before_start_is_rejected(self):
        response = self._post(ProjectViewSet, "/api/v1/projects/", {
            "name": "Al revés", "start_date": "2024-06-01", "end_date": "2024-01-01",
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("end_date", response.data)

    def test_foreign_client_is_rejected(self):
        response = self._post(ProjectViewSet, "/api/v1/projects/", {
            "name": "Ajeno", "client": self.foreign_client.id,
        })
        self.assertEqual(response.status_code, 400)

    def test_manager_cannot_create_cost_center(self):
        response = self._post(CostCenterViewSet, "/api/v1/cost-centers/", {"code": "CC-1", "name": "Obra"})
        self.assertEqual(response.status_code, 403)

    def test_worker_cannot_change_cost_center_budget(self):
        center = CostCenter.objects.create(tenant=self.tenant, code="CC-1", name="Obra", budget=500000)
        worker = get_user_model().objects.create_user(username="worker", password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=worker, role=TenantRole.WORKER)
        request = self.factory.patch(f"/api/v1/cost-centers/{center.pk}/", {"budget": "999999999"}, format="json")
        force_authenticate(request, user=worker)
        request.tenant = self.tenant
        response = CostCenterViewSet.as_view({"patch": "partial_update"})(request, pk=center.pk)
        self.assertEqual(response.status_code, 403)
        center.refresh_from_db()
        self.assertEqual(center.budget, 500000)

    def test_worker_cannot_edit_project(self):
        project = Project.objects.create(tenant=self.tenant, name="Torre")
        worker = get_user_model().objects.create_user(username="worker", password="test-pass")
        TenantUser.objects.create(tenant=self.tenant, user=worker, role=TenantRole.WORKER)
        request = self.factory.put(f"/api/v1/projects/{project.pk}/", {"name": "Otra"}, format="json")
        force_authenticate(request, user=worker)
        request.tenant = self.tenant
        response = ProjectViewSet.as_view({"put": "update"})(request, pk=project.pk)
        self.assertEqual(response.status_code, 403)
