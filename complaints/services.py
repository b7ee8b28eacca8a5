import logging
from concurrent.futures import ThreadPoolExecutor

from gateway.exceptions import ApiError, SessionExpired, is_not_found
from gateway.results import ServiceResult
from gateway.services import BackendService
from statuses.services import StatusService

from . import workflow

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif")

# Complaint/Submit rejects multipart bodies without a formFile part.
PLACEHOLDER_FILE = ("empty.txt", b"", "application/octet-stream")


def image_errors(image):
    errors = []
    if getattr(image, "content_type", None) not in ALLOWED_IMAGE_TYPES:
        errors.append("Please select a valid image file (JPEG, PNG, GIF)")
    if getattr(image, "size", 0) > MAX_IMAGE_BYTES:
        errors.append("File size must be less than 10MB")
    if len(getattr(image, "name", "") or "") > 255:
        errors.append("File name is too long (max 255 characters)")
    return errors


def fetch_together(*calls):
    """Runs independent backend reads side by side and returns their results in order."""
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(call) for call in calls]
        return [f.result() for f in futures]


class ComplaintService(BackendService):

    def get_all_complaints(self):
        return self._list("/Complaint/GetAll", "Failed to fetch complaints")

    def get_user_complaints(self):
        return self._list("/Complaint/GetAllUserComplaints", "Failed to fetch user complaints")

    def get_complaints_for(self, endpoint):
        return self._list(endpoint, "Failed to fetch complaints")

    def _list(self, endpoint, fallback_message):
        try:
            envelope = self.client.get(endpoint)
        except SessionExpired:
            raise
        except ApiError as e:
            if is_not_found(e.message):
                return self._empty()
            return ServiceResult.failure(e.message or fallback_message)

        result = ServiceResult.from_envelope(envelope, fallback_message)
        if not result.success and is_not_found(result.message):
            return self._empty()
        if result.success and result.data is None:
            result.data = []
        return result

    def _empty(self):
        return ServiceResult(success=True, message="No complaints found", data=[], empty=True)

    def get_complaint_by_id(self, complaint_id):
        return self._call(
            lambda: self.client.get(f"/Complaint/GetById/{complaint_id}"),
            "Failed to fetch complaint",
        )

    def submit_complaint(self, title, description, category_id, latitude=None, longitude=None, image=None):
        fields = {
            "Title": title,
            "Description": description,
            "CategoryId": category_id,
        }
        if latitude:
            fields["Latitude"] = str(latitude)
        if longitude:
            fields["Longitude"] = str(longitude)

        if image is not None:
            image.seek(0)
            upload = (image.name, image.read(), image.content_type)
        else:
            upload = PLACEHOLDER_FILE
        logger.debug("Submitting complaint %r with file %s", title, upload[0])

        return self._call(
            lambda: self.client.post_form("/Complaint/Submit", fields, {"formFile": upload}),
            "Failed to submit complaint",
        )

    def update_complaint_status(self, complaint_id, status_id):
        return self._call(
            lambda: self.client.put(f"/Complaint/UpdateStatus/{complaint_id}", {"id": status_id}),
            "Failed to update complaint status",
        )

    def load_with_statuses(self, complaint_id):
        statuses = StatusService(self.client)
        return fetch_together(
            lambda: self.get_complaint_by_id(complaint_id),
            statuses.get_all_statuses,
        )

    def change_status(self, complaint_id, status_id):
        """
        Sets any status on a complaint; no transition is refused.

        The returned complaint shows the new status only once the backend
        accepted the change. On failure nothing local is touched.
        """
        complaint_result, statuses_result = self.load_with_statuses(complaint_id)
        if not complaint_result.success:
            return complaint_result
        if not statuses_result.success:
            return statuses_result

        status = next((s for s in statuses_result.data if s.get("id") == status_id), None)
        if status is None:
            return ServiceResult.failure("Selected status does not exist")

        update = self.update_complaint_status(complaint_id, status_id)
        if not update.success:
            return update

        complaint = workflow.apply_status(complaint_result.data or {"id": complaint_id}, status)
        return ServiceResult(success=True, message=update.message or "Complaint status updated", data=complaint)

    def advance(self, complaint_id, expected=None):
        """Quick action: Pending -> In Progress, In Progress -> Resolved."""
        complaint_result, statuses_result = self.load_with_statuses(complaint_id)
        if not complaint_result.success:
            return complaint_result
        if not statuses_result.success:
            return statuses_result

        current = (complaint_result.data or {}).get("statusName")
        if expected and not workflow.same_status(current, expected):
            return ServiceResult.failure(f"Complaint is not {expected}")
        target = workflow.StatusWorkflow.from_statuses(statuses_result.data).quick_action(current)
        if target is None:
            return ServiceResult.failure(f"No quick action for status '{workflow.canonical_name(current)}'")

        status = next(
            (s for s in statuses_result.data if workflow.same_status(s.get("name"), target)),
            None,
        )
        if status is None:
            return ServiceResult.failure(f"Status '{target}' is not configured")

        update = self.update_complaint_status(complaint_id, status["id"])
        if not update.success:
            return update

        complaint = workflow.apply_status(complaint_result.data, status)
        return ServiceResult(success=True, message=f"Complaint marked as {status['name']}", data=complaint)

    def start_progress(self, complaint_ids):
        """Bulk quick action over pending complaints; one result per id."""
        outcomes = []
        for complaint_id in complaint_ids:
            result = self.advance(complaint_id, expected=workflow.PENDING)
            outcomes.append({
                "id": complaint_id,
                "success": result.success,
                "message": result.message,
            })
        succeeded = sum(1 for o in outcomes if o["success"])
        return ServiceResult(
            success=succeeded == len(outcomes),
            message=f"{succeeded} of {len(outcomes)} complaints moved to {workflow.IN_PROGRESS}",
            data={"items": outcomes, "count": succeeded},
        )
