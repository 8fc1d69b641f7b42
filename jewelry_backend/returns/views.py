# returns/views.py

"""
RETURN VIEWSET (STAFF)

    GET  /api/returns/                  list (filters: status, return_type,
                                        order_id, customer_id, date_from,
                                        date_to, search)
    POST /api/returns/                  request a return / exchange
    GET  /api/returns/<id>/             retrieve
    PUT  /api/returns/<id>/approve/     requested -> approved
    PUT  /api/returns/<id>/reject/      requested -> rejected (reason required)
    PUT  /api/returns/<id>/process/     approved -> processed (refund + stock)
    PUT  /api/returns/<id>/status/      generic graph move
    GET  /api/returns/<id>/history/     status history

Processing (and the generic status move, which can process) needs
returns.process; everything else returns.manage.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from history.serializers import StatusHistoryEntrySerializer
from permissions.roles import CAP_RETURNS_MANAGE, CAP_RETURNS_PROCESS, HasCapability
from returns.serializers import (
    ReturnApproveSerializer,
    ReturnCreateSerializer,
    ReturnProcessSerializer,
    ReturnRejectSerializer,
    ReturnRequestSerializer,
    ReturnStatusSerializer,
)
from returns.services.return_service import ReturnLifecycle

REFUND_ACTIONS = {"process", "set_status"}

LIST_FILTERS = ("status", "return_type", "order_id", "customer_id", "date_from", "date_to", "search")


class ReturnViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = ReturnRequestSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        self.required_capability = CAP_RETURNS_PROCESS if self.action in REFUND_ACTIONS else CAP_RETURNS_MANAGE
        return super().get_permissions()

    def get_lifecycle(self) -> ReturnLifecycle:
        return ReturnLifecycle()

    def _respond(self, lifecycle, return_request, *, code=status.HTTP_200_OK):
        return Response(ReturnRequestSerializer(lifecycle.get_return(return_request.pk)).data, status=code)

    def list(self, request):
        filters = {k: request.query_params.get(k) for k in LIST_FILTERS if request.query_params.get(k)}
        qs = self.get_lifecycle().list_returns(filters)
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(ReturnRequestSerializer(page, many=True).data)
        return Response(ReturnRequestSerializer(qs, many=True).data)

    @extend_schema(request=ReturnCreateSerializer, responses={201: ReturnRequestSerializer})
    def create(self, request):
        s = ReturnCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        return_request = lifecycle.create_return_request(actor=request.user, **s.validated_data)
        return self._respond(lifecycle, return_request, code=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(ReturnRequestSerializer(self.get_lifecycle().get_return(pk)).data)

    @extend_schema(request=ReturnApproveSerializer, responses={200: ReturnRequestSerializer})
    @action(detail=True, methods=["put"], url_path="approve")
    def approve(self, request, pk=None):
        s = ReturnApproveSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        return_request = lifecycle.approve_return(int(pk), actor=request.user, notes=s.validated_data["notes"])
        return self._respond(lifecycle, return_request)

    @extend_schema(request=ReturnRejectSerializer, responses={200: ReturnRequestSerializer})
    @action(detail=True, methods=["put"], url_path="reject")
    def reject(self, request, pk=None):
        s = ReturnRejectSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        return_request = lifecycle.reject_return(int(pk), actor=request.user, reason=s.validated_data["reason"])
        return self._respond(lifecycle, return_request)

    @extend_schema(request=ReturnProcessSerializer, responses={200: ReturnRequestSerializer})
    @action(detail=True, methods=["put"], url_path="process")
    def process(self, request, pk=None):
        s = ReturnProcessSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        return_request = lifecycle.process_return(int(pk), actor=request.user, **s.validated_data)
        return self._respond(lifecycle, return_request)

    @extend_schema(request=ReturnStatusSerializer, responses={200: ReturnRequestSerializer})
    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        s = ReturnStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        lifecycle = self.get_lifecycle()
        return_request = lifecycle.update_status(
            int(pk),
            data["status"],
            actor=request.user,
            notes=data["notes"],
            refund_method=data["refund_method"],
        )
        return self._respond(lifecycle, return_request)

    @extend_schema(responses={200: StatusHistoryEntrySerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        entries = self.get_lifecycle().get_status_history(int(pk))
        return Response(StatusHistoryEntrySerializer(entries, many=True).data)
