# common/permissions.py
from rest_framework import permissions
from common.roles import TenantRole
from tenants.models import TenantUser


def membership_for(user, tenant):
    if not (user and tenant):
        return None
    return TenantUser.objects.filter(user=user, tenant=tenant, is_active=True).first()


def user_role_for_tenant(user, tenant):
    membership = membership_for(user, tenant)
    return membership.role if membership else None


METHOD_ACTIONS = {
    "GET": "read",
    "HEAD": "read",
    "OPTIONS": "read",
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
}


def section_allows(sections, resource, action):
    """
    ``sections`` is TenantUser.allowed_sections. Grants are written as
    'invoices:create', 'invoices:*' or the bare section name 'invoices'
    (full access to that section).
    """
    sections = sections or []
    return (
        f"{resource}:{action}" in sections
        or f"{resource}:*" in sections
        or resource in sections
    )


class HasSectionAccess(permissions.BasePermission):
    """
    Views set ``permission_resource`` ("clients", "invoices", ...).
    Owners and admins are never restricted; a membership with an empty
    allowed_sections list is limited by its role only.
    """
    unrestricted_roles = {TenantRole.OWNER, TenantRole.ADMIN}

    def has_permission(self, request, view):
        resource = getattr(view, "permission_resource", None)
        if not resource:
            return True
        if not (request.user and request.user.is_authenticated):
            return False
        if request.user.is_superuser:
            return True
        membership = membership_for(request.user, getattr(request, "tenant", None))
        if membership is None:
            # IsInTenant decides requests without a company
            return True
        if membership.role in self.unrestricted_roles or not membership.allowed_sections:
            return True
        action = METHOD_ACTIONS.get(request.method, "read")
        return section_allows(membership.allowed_sections, resource, action)


class CanManageInvoices(permissions.BasePermission):
    """
    Reads are open to every member of request.tenant; issuing, editing and
    cancelling documents is limited to the finance roles.
    """
    write_roles = {TenantRole.OWNER, TenantRole.ADMIN, TenantRole.MANAGER, TenantRole.ACCOUNTANT}

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.user.is_superuser or request.method in permissions.SAFE_METHODS:
            return True
        tenant = getattr(request, "tenant", None)
        if tenant is None:
            return False
        return user_role_for_tenant(request.user, tenant) in self.write_roles
