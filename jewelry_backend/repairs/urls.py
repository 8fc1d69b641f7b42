# repairs/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from notifications.views import NotificationHistoryView
from repairs.views import RepairViewSet

router = SimpleRouter()
router.register(r"", RepairViewSet, basename="repairs")

urlpatterns = [
    path(
        "<int:pk>/notifications/history/",
        NotificationHistoryView.as_view(entity="repair"),
        name="repairs-notification-history",
    ),
    path("", include(router.urls)),
]
