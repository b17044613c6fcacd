from rest_framework.permissions import BasePermission


class IsInTenant(BasePermission):
    def has_permission(self, request, view):
        u = getattr(request, "user", None)
        t = getattr(request, "tenant", None)
        if not (u and u.is_authenticated):
            return False
        if u.is_superuser or t is None:
            return True
        return u.tenant_memberships.filter(tenant=t, is_active=True).exists()


class RoleRequired(BasePermission):
    """
    Viewset can define:
      permission_roles = { "POST": [TenantRole.ADMIN, ...], "DELETE": [TenantRole.OWNER] }
    If method not in dict → allowed (subject to IsInTenant).
    """
    def has_permission(self, request, view):
        if request.user.is_superuser:
            return True
        roles_map = getattr(view, "permission_roles", {})
        needed = roles_map.get(request.method, [])
        if not needed:
            return True
        membership = request.user.tenant_memberships.filter(tenant=request.tenant, is_active=True).first()
        return bool(membership and membership.role in needed)


class TenantScopedViewSetMixin:
    """
    Auto-filters by tenant and sets tenant on create.
    Every scoped model carries a direct FK named by tenant_field.
    """
    tenant_field = "tenant"

    def get_queryset(self):
        qs = super().get_queryset()
        t = getattr(self.request, "tenant", None)
        if t is None and self.request.user.is_superuser:
            return qs
        return qs.filter(**{self.tenant_field: t})

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ctx["tenant"] = getattr(self.request, "tenant", None)
        return ctx

    def perform_create(self, serializer):
        serializer.save(**{self.tenant_field: self.request.tenant})
