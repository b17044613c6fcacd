# purchasing/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from clients.validators import validate_rut
from common.models import TimeStampedModel


class Supplier(TimeStampedModel):
    """
    Supplier information per tenant. Purchase invoices and purchase orders point here.
    """
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="suppliers")
    rut = models.CharField(max_length=12, validators=[validate_rut])
    name = models.CharField(max_length=200, help_text="Razón social")
    trade_name = models.CharField(max_length=200, blank=True, default="", help_text="Nombre de fantasía")
    category = models.CharField(max_length=80, blank=True, default="", help_text="e.g. Materiales, Arriendo de equipos")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["name", "id"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "rut"], name="uniq_supplier_rut_per_tenant"),
        ]
        indexes = [models.Index(fields=["tenant", "is_active"], name="supplier_tenant_active_idx")]

    def __str__(self):
        return f"{self.name} ({self.rut})"


class PurchaseOrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    CANCELLED = "CANCELLED", "Cancelled"


class PurchaseOrder(TimeStampedModel):
    """
    Purchase order header (orden de compra). Amounts follow the invoice rule:
    net from the items, iva = round(net * rate), total = net + iva.
    """
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="purchase_orders")
    number = models.CharField(max_length=50, blank=True, db_index=True, help_text="OC number")
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="purchase_orders")
    project = models.ForeignKey("projects.Project", on_delete=models.SET_NULL, null=True, blank=True, related_name="purchase_orders")
    date = models.DateField(db_index=True)
    status = models.CharField(max_length=16, choices=PurchaseOrderStatus.choices, default=PurchaseOrderStatus.PENDING, db_index=True)
    notes = models.TextField(blank=True, default="")
    net_amount = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"))
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [models.Index(fields=["tenant", "status", "date"], name="po_tenant_status_date_idx")]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "number"],
                condition=Q(number__gt=""),
                name="uniq_po_number_per_tenant",
            ),
        ]

    def __str__(self):
        return f"OC {self.number or self.pk} - {self.supplier.name} ({self.status})"

    def assign_number(self):
        """Generate the OC number if not set"""
        if not self.number:
            code = (self.tenant.code or "TENANT").upper()
            self.number = f"{code}-OC-{self.id:06d}"
            self.save(update_fields=["number"])
        return self.number


class PurchaseOrderItem(models.Model):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name="items")
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("1"))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"))

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.description} x{self.quantity}"
