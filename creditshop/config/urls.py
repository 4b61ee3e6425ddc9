from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.shortcuts import redirect
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from apps.core.views import health

API_PREFIX = settings.API_PREFIX.strip("/")

urlpatterns = [
    path("admin/", admin.site.urls),
    path(f"{API_PREFIX}/health", health, name="health"),
    path(f"{API_PREFIX}/schema", SpectacularAPIView.as_view(), name="schema"),
    path(f"{API_PREFIX}/docs", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
    path(f"{API_PREFIX}/auth/login", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path(f"{API_PREFIX}/auth/refresh", TokenRefreshView.as_view(), name="token_refresh"),
    # wallet
    path(f"{API_PREFIX}/", include("apps.users.urls")),
    # top-up requests (user)
    path(f"{API_PREFIX}/", include("apps.payments.urls")),
    # orders (user)
    path(f"{API_PREFIX}/", include("apps.orders.urls")),
    # admin
    path(f"{API_PREFIX}/admin/", include((__import__('apps.orders.urls', fromlist=['admin_urlpatterns']).admin_urlpatterns, 'orders'), namespace='admin-orders')),
    path(f"{API_PREFIX}/admin/", include((__import__('apps.providers.urls', fromlist=['admin_urlpatterns']).admin_urlpatterns, 'providers'), namespace='admin-providers')),
    path(f"{API_PREFIX}/admin/", include((__import__('apps.payments.urls', fromlist=['admin_urlpatterns']).admin_urlpatterns, 'payments'), namespace='admin-payments')),
]

# Developer convenience: when DEBUG, redirect root to API docs
if settings.DEBUG:
    urlpatterns.insert(0, path("", lambda request: redirect(f"/{API_PREFIX}/docs")))
