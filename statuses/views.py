from accounts.permissions import require
from gateway.viewsets import BackendViewSet

from .serializers import serialize_statuses
from .services import StatusService


class StatusViewSet(BackendViewSet):
    permission_classes = [require("can_view_statuses")]

    def list(self, request):
        result = StatusService(self.get_client()).get_all_statuses()
        if not result.success:
            return self._result_response(result)

        items = serialize_statuses(result.data)
        return self._api_response("success", result.message or "Statuses retrieved", 200, {
            "items": items,
            "count": len(items),
        })
