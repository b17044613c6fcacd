# invoices/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models

from common.models import TimeStampedModel


class InvoiceType(models.TextChoices):
    SALE = "SALE", "Sale"
    PURCHASE = "PURCHASE", "Purchase"
    CREDIT_NOTE = "CREDIT_NOTE", "Credit note"
    DEBIT_NOTE = "DEBIT_NOTE", "Debit note"
    DISPATCH_GUIDE = "DISPATCH_GUIDE", "Dispatch guide"


class InvoiceStatus(models.TextChoices):
    ISSUED = "ISSUED", "Issued"
    PAID = "PAID", "Paid"
    CANCELLED = "CANCELLED", "Cancelled"


class EmissionType(models.TextChoices):
    MANUAL = "MANUAL", "Manual"
    ELECTRONIC = "ELECTRONIC", "Electronic"


class Invoice(TimeStampedModel):
    """
    Tax document (factura, nota de crédito/débito, guía de despacho).

    ``related_invoice`` points at the document this one amends or continues.
    Documents linked through it form a chain; see invoices.services.chains.
    """
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="invoices")
    number = models.CharField(max_length=40, db_index=True, help_text="Folio")
    date = models.DateField(db_index=True)
    due_date = models.DateField(null=True, blank=True)
    type = models.CharField(max_length=20, choices=InvoiceType.choices, default=InvoiceType.SALE, db_index=True)
    status = models.CharField(max_length=16, choices=InvoiceStatus.choices, default=InvoiceStatus.ISSUED, db_index=True)
    emission_type = models.CharField(max_length=16, choices=EmissionType.choices, default=EmissionType.MANUAL)
    purchase_order_number = models.CharField(max_length=60, blank=True, default="")
    dispatch_guide_number = models.CharField(max_length=60, blank=True, default="")

    net_amount = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"), help_text="IVA")
    total_amount = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"))
    is_paid = models.BooleanField(default=False)

    # sales documents carry a client, purchase documents a supplier
    client = models.ForeignKey("clients.Client", on_delete=models.PROTECT, null=True, blank=True, related_name="invoices")
    supplier = models.ForeignKey("purchasing.Supplier", on_delete=models.PROTECT, null=True, blank=True, related_name="invoices")
    purchase_order = models.ForeignKey(
        "purchasing.PurchaseOrder", on_delete=models.SET_NULL, null=True, blank=True, related_name="invoices",
    )
    project = models.ForeignKey("projects.Project", on_delete=models.SET_NULL, null=True, blank=True, related_name="invoices")
    cost_center = models.ForeignKey("projects.CostCenter", on_delete=models.SET_NULL, null=True, blank=True, related_name="invoices")
    related_invoice = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="amendments",
        help_text="Document this one amends (credit/debit note) or replaces (re-invoicing)",
    )
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["tenant", "date"], name="invoice_tenant_date_idx"),
            models.Index(fields=["tenant", "type", "status"], name="invoice_tenant_type_status_idx"),
            models.Index(fields=["tenant", "number"], name="invoice_tenant_number_idx"),
        ]

    def __str__(self):
        return f"{self.get_type_display()} {self.number} ({self.tenant_id})"

    @property
    def is_credit_note(self) -> bool:
        return self.type == InvoiceType.CREDIT_NOTE

    @property
    def is_cancelled(self) -> bool:
        return self.status == InvoiceStatus.CANCELLED

    @property
    def counterparty(self):
        return self.client if self.client_id else self.supplier

    @property
    def counterparty_name(self) -> str:
        return getattr(self.counterparty, "name", "") or ""

    @property
    def counterparty_rut(self) -> str:
        return getattr(self.counterparty, "rut", "") or ""


class InvoiceItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("1"))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"))

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.description} x{self.quantity}"
