from django.contrib import admin

from common.admin_mixins import TenantScopedAdmin
from .models import Invoice, InvoiceItem


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    fields = ("description", "quantity", "unit_price", "total")


@admin.register(Invoice)
class InvoiceAdmin(TenantScopedAdmin):
    list_display = ("number", "date", "type", "status", "client", "supplier", "total_amount", "is_paid", "related_invoice", "tenant")
    list_filter = ("tenant", "type", "status", "is_paid")
    search_fields = ("number", "client__name", "client__rut", "supplier__name", "supplier__rut")
    raw_id_fields = ("client", "supplier", "purchase_order", "project", "cost_center", "related_invoice", "created_by")
    date_hierarchy = "date"
    inlines = [InvoiceItemInline]
