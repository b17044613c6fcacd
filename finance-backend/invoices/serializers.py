# invoices/serializers.py
from decimal import Decimal

from rest_framework import serializers

from clients.models import Client
from projects.models import CostCenter, Project
from purchasing.models import PurchaseOrder, PurchaseOrderStatus, Supplier
from .models import Invoice, InvoiceItem, InvoiceStatus, InvoiceType

CLIENT_TYPES = {InvoiceType.SALE, InvoiceType.DISPATCH_GUIDE}


class InvoiceItemSerializer(serializers.ModelSerializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=0, read_only=True)

    class Meta:
        model = InvoiceItem
        fields = ["id", "description", "quantity", "unit_price", "total"]

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be positive.")
        return value


class InvoiceSerializer(serializers.ModelSerializer):
    """Read shape used by the list, detail and chain endpoints."""
    counterparty_name = serializers.CharField(read_only=True)
    counterparty_rut = serializers.CharField(read_only=True)
    purchase_order_ref = serializers.CharField(source="purchase_order.number", read_only=True, default=None)
    items = InvoiceItemSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id", "number", "date", "due_date", "type", "status", "emission_type",
            "purchase_order_number", "dispatch_guide_number",
            "net_amount", "tax_amount", "total_amount", "is_paid",
            "client", "supplier", "counterparty_name", "counterparty_rut",
            "purchase_order", "purchase_order_ref", "project", "cost_center",
            "related_invoice", "items", "created_at", "updated_at",
        ]
        read_only_fields = fields


class InvoiceWriteSerializer(serializers.ModelSerializer):
    """
    POST/PUT payload. Amounts are not accepted as-is: the net comes from
    ``items`` when present, otherwise from ``net_amount``; iva and total are
    always derived. A client-supplied ``id`` is ignored.
    """
    net_amount = serializers.DecimalField(max_digits=14, decimal_places=0, required=False, min_value=Decimal("0"))
    items = InvoiceItemSerializer(many=True, required=False)
    client = serializers.PrimaryKeyRelatedField(queryset=Client.objects.all(), required=False, allow_null=True)
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.all(), required=False, allow_null=True)
    purchase_order = serializers.PrimaryKeyRelatedField(queryset=PurchaseOrder.objects.all(), required=False, allow_null=True)
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all(), required=False, allow_null=True)
    cost_center = serializers.PrimaryKeyRelatedField(queryset=CostCenter.objects.all(), required=False, allow_null=True)
    related_invoice = serializers.PrimaryKeyRelatedField(queryset=Invoice.objects.all(), required=False, allow_null=True)

    class Meta:
        model = Invoice
        fields = [
            "number", "date", "due_date", "type", "status", "emission_type",
            "purchase_order_number", "dispatch_guide_number",
            "net_amount", "is_paid",
            "client", "supplier", "purchase_order", "project", "cost_center", "related_invoice", "items",
        ]

    def _check_tenant(self, obj, label):
        tenant = self.context.get("tenant")
        if obj is not None and tenant is not None and obj.tenant_id != tenant.id:
            raise serializers.ValidationError(f"{label} does not belong to this company.")
        return obj

    def validate_client(self, value):
        return self._check_tenant(value, "Client")

    def validate_supplier(self, value):
        return self._check_tenant(value, "Supplier")

    def validate_purchase_order(self, value):
        self._check_tenant(value, "Purchase order")
        if value is not None and value.status == PurchaseOrderStatus.CANCELLED:
            raise serializers.ValidationError("Purchase order is cancelled.")
        return value

    def validate_project(self, value):
        return self._check_tenant(value, "Project")

    def validate_cost_center(self, value):
        return self._check_tenant(value, "Cost center")

    def validate_related_invoice(self, value):
        self._check_tenant(value, "Related invoice")
        if value is not None and self.instance is not None and value.pk == self.instance.pk:
            raise serializers.ValidationError("An invoice cannot reference itself.")
        return value

    def validate_number(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Folio is required.")
        return value

    def _current(self, attrs, field, default=None):
        if field in attrs:
            return attrs[field]
        return getattr(self.instance, field, default)

    def _check_counterparty(self, attrs):
        inv_type = self._current(attrs, "type", InvoiceType.SALE)
        client = self._current(attrs, "client")
        supplier = self._current(attrs, "supplier")
        if client is not None and supplier is not None:
            raise serializers.ValidationError({"supplier": "A document has either a client or a supplier, not both."})
        if inv_type == InvoiceType.PURCHASE and supplier is None:
            raise serializers.ValidationError({"supplier": "Purchase invoices require a supplier."})
        if inv_type in CLIENT_TYPES and client is None:
            raise serializers.ValidationError({"client": "This document type requires a client."})
        if client is None and supplier is None:
            raise serializers.ValidationError({"client": "Provide a client or a supplier."})

        po = self._current(attrs, "purchase_order")
        if po is not None:
            if supplier is None:
                raise serializers.ValidationError({"purchase_order": "Only supplier documents can reference a purchase order."})
            if po.supplier_id != supplier.pk:
                raise serializers.ValidationError({"purchase_order": "Purchase order belongs to another supplier."})

    def validate(self, attrs):
        if self.instance is not None and not self.partial:
            # PUT replaces the record: an omitted counterparty is cleared
            for field in ("client", "supplier", "purchase_order"):
                attrs.setdefault(field, None)
        self._check_counterparty(attrs)
        if not attrs.get("items") and attrs.get("net_amount") is None:
            raise serializers.ValidationError({"net_amount": "Provide net_amount or at least one item."})
        if attrs.get("status") == InvoiceStatus.PAID:
            attrs["is_paid"] = True
        return attrs


class ChainMemberSerializer(serializers.Serializer):
    """Compact child row (the chain logic's ChainInvoice)."""
    id = serializers.IntegerField()
    number = serializers.CharField()
    date = serializers.CharField()
    type = serializers.CharField()
    status = serializers.CharField()
    related_invoice = serializers.IntegerField(source="related_invoice_id", allow_null=True)
    counterparty_name = serializers.CharField()
    total_amount = serializers.DecimalField(source="total", max_digits=14, decimal_places=0)
    is_paid = serializers.BooleanField()
