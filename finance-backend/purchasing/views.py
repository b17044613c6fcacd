# purchasing/views.py
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.response import Response

from common.api_mixins import IsInTenant, RoleRequired, TenantScopedViewSetMixin
from common.permissions import HasSectionAccess, user_role_for_tenant
from common.roles import TenantRole
from .models import PurchaseOrder, Supplier
from .serializers import PurchaseOrderSerializer, SupplierSerializer
from .services import approve_purchase_order, save_purchase_order

BUYERS = [TenantRole.OWNER, TenantRole.ADMIN, TenantRole.MANAGER, TenantRole.ACCOUNTANT]
APPROVERS = {TenantRole.OWNER, TenantRole.ADMIN, TenantRole.MANAGER}


class SupplierViewSet(TenantScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = Supplier.objects.all()
    serializer_class = SupplierSerializer
    permission_resource = "suppliers"
    permission_classes = [IsInTenant, RoleRequired, HasSectionAccess]
    permission_roles = { "POST":  BUYERS,
                         "PUT":   BUYERS,
                         "PATCH": BUYERS,
                         "DELETE": [TenantRole.ADMIN, TenantRole.OWNER] }
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ["rut", "category", "is_active"]
    search_fields = ["name", "trade_name", "rut", "email", "category"]
    ordering = ["name", "id"]
    ordering_fields = ["name", "rut", "category", "created_at"]


class PurchaseOrderViewSet(TenantScopedViewSetMixin, viewsets.ModelViewSet):
    """
    Orders (OC) per company. POST .../<id>/approve/ moves a PENDING order
    with items to APPROVED.
    """
    queryset = PurchaseOrder.objects.select_related("supplier", "project").prefetch_related("items")
    serializer_class = PurchaseOrderSerializer
    permission_resource = "purchase_orders"
    permission_classes = [IsInTenant, RoleRequired, HasSectionAccess]
    permission_roles = { "POST":  BUYERS,
                         "PUT":   BUYERS,
                         "PATCH": BUYERS,
                         "DELETE": [TenantRole.ADMIN, TenantRole.OWNER] }
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ["status", "supplier", "project"]
    search_fields = ["number", "supplier__name", "supplier__rut", "notes"]
    ordering = ["-date", "-id"]
    ordering_fields = ["date", "number", "total_amount", "status"]

    def perform_create(self, serializer):
        serializer.instance = save_purchase_order(self.request.tenant, serializer.validated_data, user=self.request.user)

    def perform_update(self, serializer):
        serializer.instance = save_purchase_order(
            self.request.tenant, serializer.validated_data, instance=serializer.instance,
        )

    def perform_destroy(self, instance):
        if instance.invoices.exists():
            raise ValidationError({"detail": "Purchase order is referenced by invoices; cancel it instead."})
        instance.delete()

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        po = self.get_object()
        if not request.user.is_superuser and user_role_for_tenant(request.user, request.tenant) not in APPROVERS:
            raise PermissionDenied("Your role cannot approve purchase orders.")
        try:
            po = approve_purchase_order(po)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(po).data)
