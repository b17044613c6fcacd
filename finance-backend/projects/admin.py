from django.contrib import admin

from common.admin_mixins import TenantScopedAdmin
from .models import CostCenter, Project


@admin.register(Project)
class ProjectAdmin(TenantScopedAdmin):
    list_display = ("name", "status", "client", "budget", "progress", "tenant")
    list_filter = ("tenant", "status")
    search_fields = ("name", "client__name")


@admin.register(CostCenter)
class CostCenterAdmin(TenantScopedAdmin):
    list_display = ("code", "name", "budget", "tenant")
    list_filter = ("tenant",)
    search_fields = ("code", "name")
    filter_horizontal = ("projects",)
