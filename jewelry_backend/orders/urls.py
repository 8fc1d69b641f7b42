# orders/urls.py

"""
Explicit routes go BEFORE router URLs.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from notifications.views import NotificationHistoryView
from orders.views import OrderViewSet

router = SimpleRouter()
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = [
    path(
        "<int:pk>/notifications/history/",
        NotificationHistoryView.as_view(entity="order"),
        name="orders-notification-history",
    ),
    path("", include(router.urls)),
]
