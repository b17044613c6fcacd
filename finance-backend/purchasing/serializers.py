# purchasing/serializers.py
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from clients.validators import normalize_rut
from projects.models import Project
from .models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus, Supplier


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = [
            "id", "rut", "name", "trade_name", "category", "email", "phone", "address",
            "notes", "is_active", "created_at", "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_rut(self, value):
        try:
            rut = normalize_rut(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        tenant = self.context.get("tenant")
        qs = Supplier.objects.filter(tenant=tenant, rut=rut)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if tenant is not None and qs.exists():
            raise serializers.ValidationError("A supplier with this RUT already exists.")
        return rut


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=0, read_only=True)

    class Meta:
        model = PurchaseOrderItem
        fields = ["id", "description", "quantity", "unit_price", "total"]

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be positive.")
        return value


class PurchaseOrderSerializer(serializers.ModelSerializer):
    """
    Read and write shape. Amounts are derived from ``items``; status moves
    to APPROVED only through the approve action.
    """
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.all())
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all(), required=False, allow_null=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = PurchaseOrderItemSerializer(many=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            "id", "number", "date", "status", "supplier", "supplier_name", "project", "notes",
            "net_amount", "tax_amount", "total_amount", "items", "approved_at",
            "created_at", "updated_at",
        ]
        read_only_fields = ["number", "net_amount", "tax_amount", "total_amount", "approved_at", "created_at", "updated_at"]

    def _check_tenant(self, obj, label):
        tenant = self.context.get("tenant")
        if obj is not None and tenant is not None and obj.tenant_id != tenant.id:
            raise serializers.ValidationError(f"{label} does not belong to this company.")
        return obj

    def validate_supplier(self, value):
        return self._check_tenant(value, "Supplier")

    def validate_project(self, value):
        return self._check_tenant(value, "Project")

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value

    def validate_status(self, value):
        current = getattr(self.instance, "status", PurchaseOrderStatus.PENDING)
        if value == PurchaseOrderStatus.APPROVED and current != PurchaseOrderStatus.APPROVED:
            raise serializers.ValidationError("Use the approve action to approve an order.")
        return value

    def validate(self, attrs):
        if self.instance is not None and self.instance.status == PurchaseOrderStatus.APPROVED:
            if set(attrs) - {"status", "notes"}:
                raise serializers.ValidationError("Approved orders can only be cancelled or annotated.")
        return attrs
