# returns/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from notifications.views import NotificationHistoryView
from returns.views import ReturnViewSet

router = SimpleRouter()
router.register(r"", ReturnViewSet, basename="returns")

urlpatterns = [
    path(
        "<int:pk>/notifications/history/",
        NotificationHistoryView.as_view(entity="return"),
        name="returns-notification-history",
    ),
    path("", include(router.urls)),
]
