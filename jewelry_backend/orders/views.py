# orders/views.py

"""
ORDER VIEWSET (STAFF)

    GET  /api/orders/                      list (filters: status, customer_id,
                                           staff_id, order_type, date_from,
                                           date_to, search)
    POST /api/orders/                      create
    GET  /api/orders/<id>/                 retrieve
    PUT  /api/orders/<id>/                 update instructions / completion / items
    PUT  /api/orders/<id>/status/          status transition
    PUT  /api/orders/<id>/cancel/          cancel + restore stock
    GET  /api/orders/<id>/invoice/         PDF (?interstate=true|false)
    GET  /api/orders/<id>/history/         status history
    POST /api/orders/<id>/customizations/  add a customization to a line
    GET  /api/orders/stats/                aggregate counts / revenue

Lifecycle errors propagate to core.api.api_exception_handler.
"""

from __future__ import annotations

from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from history.serializers import StatusHistoryEntrySerializer
from invoices.services.invoice_pdf import InvoiceGenerator
from orders.serializers import (
    CustomizationInputSerializer,
    OrderCancelSerializer,
    OrderCreateSerializer,
    OrderItemCustomizationSerializer,
    OrderSerializer,
    OrderStatsQuerySerializer,
    OrderStatsSerializer,
    OrderStatusSerializer,
    OrderUpdateSerializer,
)
from orders.services.order_service import OrderLifecycle
from permissions.roles import CAP_ORDERS_MANAGE, CAP_ORDERS_VIEW, HasCapability

READ_ACTIONS = {"list", "retrieve", "invoice", "history", "stats"}

LIST_FILTERS = ("status", "customer_id", "staff_id", "order_type", "date_from", "date_to", "search")


def _parse_bool(raw):
    if raw is None or raw == "":
        return None
    return str(raw).strip().lower() in {"1", "true", "yes"}


class OrderViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = OrderSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        self.required_capability = CAP_ORDERS_VIEW if self.action in READ_ACTIONS else CAP_ORDERS_MANAGE
        return super().get_permissions()

    def get_lifecycle(self) -> OrderLifecycle:
        return OrderLifecycle()

    # --------------------------------------------------
    # CRUD
    # --------------------------------------------------

    def list(self, request):
        filters = {k: request.query_params.get(k) for k in LIST_FILTERS if request.query_params.get(k)}
        qs = self.get_lifecycle().list_orders(filters)
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(OrderSerializer(page, many=True).data)
        return Response(OrderSerializer(qs, many=True).data)

    @extend_schema(request=OrderCreateSerializer, responses={201: OrderSerializer})
    def create(self, request):
        s = OrderCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        lifecycle = self.get_lifecycle()
        order = lifecycle.create_order(
            customer_id=data["customer_id"],
            staff=request.user,
            items=data["items"],
            order_type=data["order_type"],
            special_instructions=data["special_instructions"],
            estimated_completion=data["estimated_completion"],
        )
        return Response(
            OrderSerializer(lifecycle.get_order(order.pk)).data,
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, pk=None):
        return Response(OrderSerializer(self.get_lifecycle().get_order(pk)).data)

    @extend_schema(request=OrderUpdateSerializer, responses={200: OrderSerializer})
    def update(self, request, pk=None):
        s = OrderUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        order = self.get_lifecycle().update_order(int(pk), actor=request.user, **s.validated_data)
        return Response(OrderSerializer(order).data)

    # --------------------------------------------------
    # LIFECYCLE ACTIONS
    # --------------------------------------------------

    @extend_schema(request=OrderStatusSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        s = OrderStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        order = lifecycle.update_status(
            int(pk),
            s.validated_data["status"],
            actor=request.user,
            notes=s.validated_data["notes"],
        )
        return Response(OrderSerializer(lifecycle.get_order(order.pk)).data)

    @extend_schema(request=OrderCancelSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["put"], url_path="cancel")
    def cancel(self, request, pk=None):
        s = OrderCancelSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        order = lifecycle.cancel_order(int(pk), reason=s.validated_data["reason"], actor=request.user)
        return Response(OrderSerializer(lifecycle.get_order(order.pk)).data)

    @extend_schema(request=CustomizationInputSerializer, responses={201: OrderItemCustomizationSerializer})
    @action(detail=True, methods=["post"], url_path="customizations")
    def customizations(self, request, pk=None):
        s = CustomizationInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        customization = self.get_lifecycle().add_customization(int(pk), actor=request.user, **s.validated_data)
        return Response(
            OrderItemCustomizationSerializer(customization).data,
            status=status.HTTP_201_CREATED,
        )

    # --------------------------------------------------
    # READ-ONLY EXTRAS
    # --------------------------------------------------

    @extend_schema(
        parameters=[OpenApiParameter("interstate", OpenApiTypes.BOOL, required=False)],
        responses={(200, "application/pdf"): OpenApiTypes.BINARY},
    )
    @action(detail=True, methods=["get"], url_path="invoice")
    def invoice(self, request, pk=None):
        order = self.get_lifecycle().get_order(pk)
        generator = InvoiceGenerator()
        pdf = generator.render(order, interstate=_parse_bool(request.query_params.get("interstate")))

        response = HttpResponse(pdf, content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="{generator.invoice_number(order)}.pdf"'
        return response

    @extend_schema(responses={200: StatusHistoryEntrySerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        entries = self.get_lifecycle().get_status_history(int(pk))
        return Response(StatusHistoryEntrySerializer(entries, many=True).data)

    @extend_schema(parameters=[OrderStatsQuerySerializer], responses={200: OrderStatsSerializer})
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        q = OrderStatsQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)

        stats = self.get_lifecycle().get_order_stats(**q.validated_data)
        return Response(OrderStatsSerializer(stats).data)
