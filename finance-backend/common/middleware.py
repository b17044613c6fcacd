# common/middleware.py
import logging

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from rest_framework_simplejwt.authentication import JWTAuthentication

from tenants.models import Tenant, TenantUser

logger = logging.getLogger(__name__)


AUTH_WHITELIST = (
    "/admin",
    "/api/v1/docs",
    "/api/v1/schema",
    "/api/v1/auth",        # token/refresh/verify
    "/static/",
)


def _allow_origin(request, response, expose=False):
    origin = request.headers.get("Origin")
    if origin:
        response["Access-Control-Allow-Origin"] = origin
        response["Access-Control-Allow-Credentials"] = "true"
        if expose:
            # invoice PDF/CSV downloads carry their filename here
            response["Access-Control-Expose-Headers"] = "Content-Disposition"
    return response


def _deny(request, detail, status):
    return _allow_origin(request, JsonResponse({"detail": detail}, status=status))


class TenantContextMiddleware:
    """
    Authenticates the JWT and binds ``request.tenant`` for every API call.

    The active company comes from the token claims first (``tenant_id`` /
    ``tenant_code``) and falls back to the ``X-Tenant-Id`` / ``X-Tenant-Code``
    headers sent by the company switcher.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.method == "OPTIONS":
            response = HttpResponse()
            if not request.headers.get("Origin"):
                response["Access-Control-Allow-Origin"] = "*"
            _allow_origin(request, response)
            response["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
            response["Access-Control-Allow-Headers"] = "Content-Type, Authorization, X-Tenant-Id, X-Tenant-Code"
            response["Access-Control-Max-Age"] = "86400"
            return response

        if request.path.startswith(AUTH_WHITELIST):
            request.tenant = None
            return self.get_response(request)

        media_url = getattr(settings, "MEDIA_URL", "/media/")
        if media_url and request.path.startswith(media_url):
            return self.get_response(request)

        try:
            auth_result = JWTAuthentication().authenticate(request)
        except Exception as e:
            logger.info(f"Rejected token on {request.path}: {e}")
            return _deny(request, "Invalid token", 401)
        if not auth_result:
            return _deny(request, "Authentication required", 401)
        user, token = auth_result

        tenant_id = token.payload.get("tenant_id") or request.headers.get("X-Tenant-Id")
        tenant_code = token.payload.get("tenant_code") or request.headers.get("X-Tenant-Code")

        tenant = None
        if tenant_id:
            try:
                tenant = Tenant.objects.filter(id=int(tenant_id), is_active=True).first()
            except (TypeError, ValueError):
                tenant = None
        if not tenant and tenant_code:
            tenant = Tenant.objects.filter(code=str(tenant_code), is_active=True).first()

        if not tenant:
            return _deny(request, "Invalid tenant", 403)

        is_member = user.is_superuser or TenantUser.objects.filter(
            user=user, tenant=tenant, is_active=True
        ).exists()
        if not is_member:
            logger.warning(f"User {user.pk} is not a member of tenant {tenant.code}")
            return _deny(request, "User not a member of tenant", 403)

        request.user = user
        request.tenant = tenant

        response = self.get_response(request)
        return _allow_origin(request, response, expose=True)
