# projects/models.py
from decimal import Decimal

from django.core.validators import MaxValueValidator
from django.db import models

from common.models import TimeStampedModel


class Project(TimeStampedModel):
    STATUS_CHOICES = [
        ("ACTIVE", "Active"),
        ("COMPLETED", "Completed"),
        ("ARCHIVED", "Archived"),
    ]
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="projects")
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="ACTIVE", db_index=True)
    client = models.ForeignKey("clients.Client", on_delete=models.SET_NULL, null=True, blank=True, related_name="projects")
    budget = models.DecimalField(max_digits=14, decimal_places=0, default=Decimal("0"))
    address = models.CharField(max_length=255, blank=True, default="")
    progress = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["name", "id"]

    def __str__(self):
        return self.name


class CostCenter(TimeStampedModel):
    """
    Internal cost code (e.g. BRJ-01) that expenses and invoices are booked against.
    """
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="cost_centers")
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)
    budget = models.DecimalField(max_digits=14, decimal_places=0, null=True, blank=True)
    projects = models.ManyToManyField(Project, blank=True, related_name="cost_centers")

    class Meta:
        ordering = ["code"]
        unique_together = [("tenant", "code")]

    def __str__(self):
        return f"{self.code} - {self.name}"
