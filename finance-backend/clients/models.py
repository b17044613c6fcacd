# clients/models.py
from django.db import models

from common.models import TimeStampedModel
from .validators import validate_rut


class Client(TimeStampedModel):
    """
    Tenant-scoped customer that sales invoices are issued to. Suppliers live in purchasing.
    """
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="clients")
    rut = models.CharField(max_length=12, validators=[validate_rut])
    name = models.CharField(max_length=200, help_text="Razón social")
    trade_name = models.CharField(max_length=200, blank=True, default="", help_text="Nombre comercial")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["name", "id"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "rut"], name="uniq_client_rut_per_tenant"),
        ]
        indexes = [
            models.Index(fields=["tenant", "name"], name="client_tenant_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.rut})"
