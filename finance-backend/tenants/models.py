from django.conf import settings
from django.db import models
from common.models import TimeStampedModel
from common.roles import TenantRole


class Tenant(TimeStampedModel):
    """
    Company. Clients, projects, cost centers and invoices FK to this (via 'tenant').
    """
    name = models.CharField(max_length=120)
    code = models.SlugField(unique=True)
    rut = models.CharField(max_length=16, blank=True, null=True, db_index=True)   # company tax id
    currency_code = models.CharField(max_length=3, default="CLP")                 # ISO 4217
    logo_url = models.URLField(blank=True, null=True)
    address = models.CharField(max_length=255, blank=True, null=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["rut"],
                condition=~models.Q(rut__isnull=True) & ~models.Q(rut=""),
                name="uniq_tenant_rut",
            ),
        ]

    def __str__(self):
        return self.name


class TenantUser(models.Model):
    """
    Membership binding a Django user to a Tenant, with a role.
    """
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tenant_memberships")
    role = models.CharField(max_length=20, choices=TenantRole.choices, default=TenantRole.MANAGER)
    is_active = models.BooleanField(default=True)
    # sidebar sections the user may open; empty => everything the role allows
    allowed_sections = models.JSONField(default=list, blank=True)

    class Meta:
        unique_together = ("tenant", "user")
        ordering = ["id"]  # stable default for pagination

    def __str__(self):
        return f"{self.user} @ {self.tenant} ({self.role})"
