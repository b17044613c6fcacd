# core/urls.py
"""
URL configuration for the finance backend.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView, TokenVerifyView

from common.auth_views import TenantAwareTokenObtainPairView
from .api import router  # ← single router for the CRUD viewsets


urlpatterns = [
    path("admin/", admin.site.urls),

    # Auth
    path("api/v1/auth/token/", TenantAwareTokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/v1/auth/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/v1/auth/verify/", TokenVerifyView.as_view(), name="token_verify"),

    # API & docs
    path("api/v1/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/v1/docs/", SpectacularSwaggerView.as_view(url_name="schema")),
    path("api/v1/", include(router.urls)),
    path("api/v1/invoices/", include("invoices.urls", namespace="invoices")),
]
