from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import action

from accounts.permissions import IsAdminRole, require
from accounts.services import AuthService
from gateway.viewsets import BackendViewSet

from . import directions, workflow
from .serializers import (
    BulkStartSerializer,
    ComplaintSerializer,
    ComplaintSubmitSerializer,
    StatusChangeSerializer,
)
from .services import ComplaintService


class ComplaintViewSet(BackendViewSet):

    def get_permissions(self):
        flag = {
            "list": "can_view_own_complaints",
            "mine": "can_view_own_complaints",
            "create": "can_submit_complaint",
            "retrieve": "can_view_own_complaints",
            "get_directions": "can_view_own_complaints",
            "pending": "can_view_all_complaints",
            "stats": "can_view_admin_dashboard",
            "set_status": "can_update_complaint_status",
            "quick_action": "can_update_complaint_status",
            "bulk_start": "can_update_complaint_status",
        }.get(self.action, "can_view_all_complaints")
        if self.action in ("pending", "stats"):
            return [IsAdminRole(), require(flag)()]
        return [require(flag)()]

    def get_service(self):
        return ComplaintService(self.get_client())

    def _context(self):
        return {
            "now": timezone.now(),
            "user_agent": self.request.META.get("HTTP_USER_AGENT", ""),
        }

    def _list_response(self, result, complaints=None):
        if not result.success:
            return self._result_response(result)
        complaints = result.data if complaints is None else complaints
        items = ComplaintSerializer(complaints, many=True, context=self._context()).data
        return self._api_response("success", result.message or "Complaints retrieved", 200, {
            "items": items,
            "count": len(items),
            "empty": result.empty or not items,
        })

    def list(self, request):
        # admins see every complaint, everybody else only their own
        endpoint = AuthService(self.get_client(), self.get_token_store()).complaints_endpoint()
        return self._list_response(self.get_service().get_complaints_for(endpoint))

    @action(detail=False, methods=["get"], url_path="mine")
    def mine(self, request):
        return self._list_response(self.get_service().get_user_complaints())

    def create(self, request):
        serializer = ComplaintSubmitSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)

        data = serializer.validated_data
        result = self.get_service().submit_complaint(
            title=data["title"],
            description=data["description"],
            category_id=data["category_id"],
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            image=data.get("image"),
        )
        return self._result_response(result, success_code=201)

    def retrieve(self, request, pk=None):
        result = self.get_service().get_complaint_by_id(pk)
        if not result.success or not result.data:
            return self._api_response("error", result.message or "Complaint not found", status.HTTP_404_NOT_FOUND, {})
        return self._api_response(
            "success",
            result.message or "Complaint retrieved",
            200,
            ComplaintSerializer(result.data, context=self._context()).data,
        )

    @action(detail=False, methods=["get"], url_path="pending")
    def pending(self, request):
        result = self.get_service().get_all_complaints()
        if not result.success:
            return self._result_response(result)

        overdue_only = request.GET.get("overdue") in ("1", "true", "True")
        queue = workflow.pending_queue(
            result.data,
            search=request.GET.get("q", "").strip(),
            overdue_only=overdue_only,
            now=self._context()["now"],
        )
        return self._list_response(result, queue)

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        result = self.get_service().get_all_complaints()
        if not result.success:
            return self._result_response(result)
        return self._api_response(
            "success",
            "Complaint statistics",
            200,
            workflow.summarize(result.data, self._context()["now"]),
        )

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = StatusChangeSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)

        result = self.get_service().change_status(pk, serializer.validated_data["status_id"])
        if not result.success:
            return self._result_response(result)
        return self._api_response(
            "success",
            result.message,
            200,
            ComplaintSerializer(result.data, context=self._context()).data,
        )

    @action(detail=True, methods=["post"], url_path="quick-action")
    def quick_action(self, request, pk=None):
        result = self.get_service().advance(pk)
        if not result.success:
            return self._result_response(result)
        return self._api_response(
            "success",
            result.message,
            200,
            ComplaintSerializer(result.data, context=self._context()).data,
        )

    @action(detail=False, methods=["post"], url_path="bulk-start")
    def bulk_start(self, request):
        serializer = BulkStartSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)

        result = self.get_service().start_progress(serializer.validated_data["ids"])
        code = 200 if result.success else status.HTTP_207_MULTI_STATUS
        return self._api_response("success" if result.success else "error", result.message, code, result.data)

    @action(detail=True, methods=["get"], url_path="directions")
    def get_directions(self, request, pk=None):
        result = self.get_service().get_complaint_by_id(pk)
        if not result.success or not result.data:
            return self._api_response("error", result.message or "Complaint not found", status.HTTP_404_NOT_FOUND, {})

        lat, lng = result.data.get("latitude"), result.data.get("longitude")
        if not lat or not lng:
            return self._api_response("error", "Complaint has no location", status.HTTP_400_BAD_REQUEST, {})

        user_agent = request.META.get("HTTP_USER_AGENT", "")
        return self._api_response("success", "Directions link", 200, {
            "platform": directions.platform_for(user_agent),
            "directions_url": directions.directions_url(lat, lng, user_agent),
            "view_url": directions.view_url(lat, lng),
        })
