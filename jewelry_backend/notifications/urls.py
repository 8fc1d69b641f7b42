# notifications/urls.py

from django.urls import path

from .views import NotificationTemplateListView, NotificationTemplateUpdateView, SendNotificationView

app_name = "notifications"

urlpatterns = [
    path("send/", SendNotificationView.as_view(), name="send"),
    path("templates/", NotificationTemplateListView.as_view(), name="template-list"),
    path("templates/<int:pk>/", NotificationTemplateUpdateView.as_view(), name="template-update"),
]
