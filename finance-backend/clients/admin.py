from django.contrib import admin

from common.admin_mixins import TenantScopedAdmin
from .models import Client


@admin.register(Client)
class ClientAdmin(TenantScopedAdmin):
    list_display = ("name", "rut", "trade_name", "email", "phone", "tenant")
    list_filter = ("tenant",)
    search_fields = ("name", "trade_name", "rut", "email")
    ordering = ("tenant__name", "name")
