# notifications/views.py

"""
NOTIFICATION ENDPOINTS

- POST /api/notifications/send/              manual send (notifications.send)
- GET  /api/notifications/templates/         template store
- PUT  /api/notifications/templates/<id>/    edit subject/body/active flag
- GET  /api/<entity>/<id>/notifications/history/   mounted by each lifecycle app
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import DependencyError, NotFoundError
from notifications.models import NotificationTemplate
from notifications.serializers import (
    NotificationSerializer,
    NotificationTemplateSerializer,
    SendNotificationSerializer,
)
from notifications.services.dispatcher import NotificationDispatcher
from permissions.roles import (
    CAP_NOTIFICATIONS_SEND,
    CAP_ORDERS_VIEW,
    CAP_REPAIRS_MANAGE,
    HasAnyCapability,
    HasCapability,
    IsStaff,
)


def _related(model_path: str, pk):
    if pk is None:
        return None
    from django.apps import apps

    model = apps.get_model(model_path)
    obj = model.objects.filter(pk=pk).first()
    if obj is None:
        raise NotFoundError(f"{model.__name__} {pk} not found")
    return obj


class SendNotificationView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_NOTIFICATIONS_SEND

    @extend_schema(request=SendNotificationSerializer, responses={201: NotificationSerializer})
    def post(self, request):
        s = SendNotificationSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        if not get_user_model().objects.filter(pk=data["customer_id"]).exists():
            raise NotFoundError(f"Customer {data['customer_id']} not found")

        template_data = dict(data["template_data"])
        if data["message"]:
            template_data.setdefault("message", data["message"])
        if data["subject"]:
            template_data.setdefault("subject", data["subject"])

        notification = NotificationDispatcher().send(
            customer_id=data["customer_id"],
            notification_type=data["notification_type"],
            channels=data["channels"],
            template_data=template_data,
            order=_related("orders.Order", data["order_id"]),
            repair=_related("repairs.RepairRequest", data["repair_id"]),
            return_request=_related("returns.ReturnRequest", data["return_id"]),
        )
        if notification is None:
            raise DependencyError("Notification could not be recorded")

        return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)


class NotificationTemplateListView(generics.ListAPIView):
    permission_classes = [IsAuthenticated, IsStaff]
    serializer_class = NotificationTemplateSerializer
    queryset = NotificationTemplate.objects.all()
    filterset_fields = ["notification_type", "channel", "is_active"]
    pagination_class = None


class NotificationTemplateUpdateView(generics.UpdateAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_NOTIFICATIONS_SEND
    serializer_class = NotificationTemplateSerializer
    queryset = NotificationTemplate.objects.all()


class NotificationHistoryView(generics.ListAPIView):
    """
    Newest first. `entity` is bound per mount: "order", "repair" or "return".
    """

    entity = None
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_ORDERS_VIEW, CAP_REPAIRS_MANAGE}
    serializer_class = NotificationSerializer

    def get_queryset(self):
        return NotificationDispatcher().history_for(self.entity, self.kwargs["pk"])
