# projects/views.py
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets
from rest_framework.filters import OrderingFilter, SearchFilter

from common.api_mixins import IsInTenant, RoleRequired, TenantScopedViewSetMixin
from common.permissions import HasSectionAccess
from common.roles import TenantRole
from .models import CostCenter, Project
from .serializers import CostCenterSerializer, ProjectSerializer

PROJECT_WRITERS = [TenantRole.OWNER, TenantRole.ADMIN, TenantRole.MANAGER]
COST_CENTER_WRITERS = [TenantRole.OWNER, TenantRole.ADMIN]


class ProjectViewSet(TenantScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = Project.objects.select_related("client")
    serializer_class = ProjectSerializer
    permission_resource = "projects"
    permission_classes = [IsInTenant, RoleRequired, HasSectionAccess]
    permission_roles = { "POST":  PROJECT_WRITERS,
                         "PUT":   PROJECT_WRITERS,
                         "PATCH": PROJECT_WRITERS,
                         "DELETE": [TenantRole.ADMIN, TenantRole.OWNER] }
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ["status", "client"]
    search_fields = ["name", "description", "address"]
    ordering = ["name", "id"]
    tenant_field = "tenant"


class CostCenterViewSet(TenantScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = CostCenter.objects.prefetch_related("projects")
    serializer_class = CostCenterSerializer
    permission_resource = "cost_centers"
    permission_classes = [IsInTenant, RoleRequired, HasSectionAccess]
    permission_roles = { "POST":  COST_CENTER_WRITERS,
                         "PUT":   COST_CENTER_WRITERS,
                         "PATCH": COST_CENTER_WRITERS,
                         "DELETE": [TenantRole.ADMIN, TenantRole.OWNER] }
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ["code", "name"]
    ordering = ["code"]
    tenant_field = "tenant"
