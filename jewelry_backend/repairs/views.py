# repairs/views.py

"""
REPAIR VIEWSET (STAFF)

    GET  /api/repairs/                  list (filters: status, technician_id,
                                        customer_id, repair_type, date_from,
                                        date_to)
    POST /api/repairs/                  create
    GET  /api/repairs/queue/            open work, earliest due first
    GET  /api/repairs/<id>/             retrieve
    PUT  /api/repairs/<id>/             update costs / notes / approval / technician
    PUT  /api/repairs/<id>/status/      status transition
    POST /api/repairs/<id>/photos/      replace before/after photos
    GET  /api/repairs/<id>/history/     status history
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from history.serializers import StatusHistoryEntrySerializer
from permissions.roles import CAP_REPAIRS_MANAGE, HasCapability
from repairs.serializers import (
    RepairCreateSerializer,
    RepairPhotosSerializer,
    RepairRequestSerializer,
    RepairStatusSerializer,
    RepairUpdateSerializer,
)
from repairs.services.repair_service import RepairLifecycle

LIST_FILTERS = ("status", "technician_id", "customer_id", "repair_type", "date_from", "date_to")


class RepairViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REPAIRS_MANAGE
    serializer_class = RepairRequestSerializer
    lookup_value_regex = r"\d+"

    def get_lifecycle(self) -> RepairLifecycle:
        return RepairLifecycle()

    def list(self, request):
        filters = {k: request.query_params.get(k) for k in LIST_FILTERS if request.query_params.get(k)}
        qs = self.get_lifecycle().list_repairs(filters)
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(RepairRequestSerializer(page, many=True).data)
        return Response(RepairRequestSerializer(qs, many=True).data)

    @extend_schema(request=RepairCreateSerializer, responses={201: RepairRequestSerializer})
    def create(self, request):
        s = RepairCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        repair = lifecycle.create_repair(actor=request.user, **s.validated_data)
        return Response(
            RepairRequestSerializer(lifecycle.get_repair(repair.pk)).data,
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, pk=None):
        return Response(RepairRequestSerializer(self.get_lifecycle().get_repair(pk)).data)

    @extend_schema(request=RepairUpdateSerializer, responses={200: RepairRequestSerializer})
    def update(self, request, pk=None):
        s = RepairUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        repair = self.get_lifecycle().update_repair(int(pk), actor=request.user, **s.validated_data)
        return Response(RepairRequestSerializer(repair).data)

    @extend_schema(request=RepairStatusSerializer, responses={200: RepairRequestSerializer})
    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        s = RepairStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        repair = lifecycle.update_status(
            int(pk),
            s.validated_data["status"],
            actor=request.user,
            notes=s.validated_data["notes"],
        )
        return Response(RepairRequestSerializer(lifecycle.get_repair(repair.pk)).data)

    @extend_schema(request=RepairPhotosSerializer, responses={200: RepairRequestSerializer})
    @action(detail=True, methods=["post"], url_path="photos")
    def photos(self, request, pk=None):
        s = RepairPhotosSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        lifecycle = self.get_lifecycle()
        repair = lifecycle.upload_photos(int(pk), **s.validated_data)
        return Response(RepairRequestSerializer(lifecycle.get_repair(repair.pk)).data)

    @extend_schema(
        parameters=[OpenApiParameter("technician_id", OpenApiTypes.UUID, required=False)],
        responses={200: RepairRequestSerializer(many=True)},
    )
    @action(detail=False, methods=["get"], url_path="queue")
    def queue(self, request):
        qs = self.get_lifecycle().get_repair_queue(request.query_params.get("technician_id") or None)
        return Response(RepairRequestSerializer(qs, many=True).data)

    @extend_schema(responses={200: StatusHistoryEntrySerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        entries = self.get_lifecycle().get_status_history(int(pk))
        return Response(StatusHistoryEntrySerializer(entries, many=True).data)
