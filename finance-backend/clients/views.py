# clients/views.py
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets
from rest_framework.filters import OrderingFilter, SearchFilter

from common.api_mixins import IsInTenant, RoleRequired, TenantScopedViewSetMixin
from common.permissions import HasSectionAccess
from common.roles import TenantRole
from .models import Client
from .serializers import ClientSerializer

CLIENT_WRITERS = [TenantRole.OWNER, TenantRole.ADMIN, TenantRole.MANAGER, TenantRole.ACCOUNTANT]


class ClientViewSet(TenantScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = Client.objects.all()
    serializer_class = ClientSerializer
    permission_resource = "clients"
    permission_classes = [IsInTenant, RoleRequired, HasSectionAccess]
    permission_roles = { "POST":  CLIENT_WRITERS,
                         "PUT":   CLIENT_WRITERS,
                         "PATCH": CLIENT_WRITERS,
                         "DELETE": [TenantRole.ADMIN, TenantRole.OWNER] }
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ["rut"]
    search_fields = ["name", "trade_name", "rut", "email"]
    ordering = ["name", "id"]
    ordering_fields = ["name", "rut", "created_at"]
    tenant_field = "tenant"
