from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework import exceptions
from tenants.models import Tenant, TenantUser

class TenantAwareTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Accepts username, password, and optional tenant_code (the company to open).
    Embeds tenant + role in the resulting tokens.
    """

    def _membership(self, tenant_code):
        if tenant_code:
            tenant = Tenant.objects.filter(code=tenant_code, is_active=True).first()
            if not tenant:
                raise exceptions.AuthenticationFailed("Invalid tenant")
            membership = TenantUser.objects.filter(user=self.user, tenant=tenant, is_active=True).first()
            if not membership:
                raise exceptions.AuthenticationFailed("User is not a member of this tenant")
            return membership
        membership = (
            self.user.tenant_memberships
            .filter(is_active=True, tenant__is_active=True)
            .select_related("tenant")
            .order_by("id")
            .first()
        )
        if not membership:
            raise exceptions.AuthenticationFailed("User has no active tenant memberships")
        return membership

    def validate(self, attrs):
        # SimpleJWT authenticates and sets self.user
        data = super().validate(attrs)

        request = self.context["request"]
        membership = self._membership(request.data.get("tenant_code"))
        tenant = membership.tenant

        # fresh tokens WITH custom claims (ignore the ones created by super())
        refresh = self.get_token(self.user)
        refresh["tenant_id"] = tenant.id
        refresh["tenant_code"] = tenant.code
        refresh["role"] = membership.role

        data["refresh"] = str(refresh)
        data["access"] = str(refresh.access_token)
        data["tenant"] = {"id": tenant.id, "code": tenant.code, "name": tenant.name, "rut": tenant.rut}
        data["role"] = membership.role
        data["allowed_sections"] = membership.allowed_sections or []
        return data
