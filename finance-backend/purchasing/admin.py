from django.contrib import admin

from common.admin_mixins import TenantScopedAdmin
from .models import PurchaseOrder, PurchaseOrderItem, Supplier


@admin.register(Supplier)
class SupplierAdmin(TenantScopedAdmin):
    list_display = ("name", "rut", "category", "email", "phone", "is_active", "tenant")
    list_filter = ("tenant", "category", "is_active")
    search_fields = ("name", "trade_name", "rut", "email")
    ordering = ("tenant__name", "name")


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    fields = ("description", "quantity", "unit_price", "total")


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(TenantScopedAdmin):
    list_display = ("number", "date", "supplier", "project", "status", "total_amount", "tenant")
    list_filter = ("tenant", "status")
    search_fields = ("number", "supplier__name", "supplier__rut", "notes")
    readonly_fields = ("created_at", "updated_at", "approved_at")
    raw_id_fields = ("supplier", "project", "created_by")
    date_hierarchy = "date"
    inlines = [PurchaseOrderItemInline]
