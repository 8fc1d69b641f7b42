# backend/urls.py
"""
PROJECT URLS

Everything lives under /api/; "/" redirects to the Swagger UI.

- /api/health/ (AllowAny) checks the database and reports the
  collaborator backend in use ("http" or "local").
- Django admin path is configurable via ADMIN_PATH.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import connections
from django.db.utils import OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema, inline_serializer
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

MODULES = {
    "orders": "/api/orders/",
    "repairs": "/api/repairs/",
    "returns": "/api/returns/",
    "notifications": "/api/notifications/",
}


@extend_schema(
    responses=inline_serializer(
        "ApiIndex",
        fields={
            "message": serializers.CharField(),
            "auth": serializers.DictField(child=serializers.CharField()),
            "docs": serializers.DictField(child=serializers.CharField()),
            "modules": serializers.DictField(child=serializers.CharField()),
        },
    )
)
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response(
        {
            "message": f"{settings.BUSINESS.get('NAME') or 'Jewelry'} back office API",
            "auth": {
                "me": "/api/auth/me/",
                "jwt_create": "/api/auth/jwt/create/",
                "jwt_refresh": "/api/auth/jwt/refresh/",
            },
            "docs": {"swagger": "/api/docs/", "schema": "/api/schema/"},
            "modules": MODULES,
        }
    )


@extend_schema(
    responses={
        200: inline_serializer(
            "Health",
            fields={
                "status": serializers.CharField(),
                "db": serializers.CharField(),
                "integrations": serializers.CharField(),
            },
        ),
        503: inline_serializer(
            "HealthDegraded",
            fields={
                "status": serializers.CharField(),
                "db": serializers.CharField(),
                "error": serializers.CharField(),
            },
        ),
    }
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except OperationalError as exc:
        return Response({"status": "degraded", "db": "down", "error": str(exc)}, status=503)

    return Response({"status": "ok", "db": "ok", "integrations": settings.INTEGRATIONS["BACKEND"]})


# Keep the trailing slash; set ADMIN_PATH to something non-obvious in production.
ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/")
if not ADMIN_PATH.endswith("/"):
    ADMIN_PATH = f"{ADMIN_PATH}/"


api_urlpatterns = [
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("auth/", include("users.urls")),
    path("orders/", include("orders.urls")),
    path("repairs/", include("repairs.urls")),
    path("returns/", include("returns.urls")),
    path("notifications/", include("notifications.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
