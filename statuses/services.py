from gateway.results import ServiceResult
from gateway.services import BackendService


class StatusService(BackendService):

    def get_all_statuses(self):
        result = self._call(lambda: self.client.get("/Status/GetAll"), "Failed to fetch statuses")
        if result.success and result.data is None:
            result.data = []
        return result

    def find_by_name(self, name):
        """Status dict whose name matches case-insensitively, or None."""
        result = self.get_all_statuses()
        if not result.success:
            return result
        wanted = (name or "").strip().lower()
        for item in result.data:
            if (item.get("name") or "").strip().lower() == wanted:
                return ServiceResult(success=True, message="Status found", data=item)
        return ServiceResult.failure(f"Status '{name}' not found")
