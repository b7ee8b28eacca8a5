import logging

from .exceptions import ApiError, SessionExpired
from .results import ServiceResult

logger = logging.getLogger(__name__)


class BackendService:
    """Base for the domain services; one instance per ApiClient."""

    def __init__(self, client):
        self.client = client

    def _call(self, send, fallback_message):
        """
        Runs `send()` and turns the envelope into a ServiceResult.

        A 401 is not a service failure: SessionExpired goes up to the view so
        the whole session can be dropped.
        """
        try:
            envelope = send()
        except SessionExpired:
            raise
        except ApiError as e:
            logger.info("%s: %s", fallback_message, e.message)
            return ServiceResult.failure(e.message or fallback_message)
        return ServiceResult.from_envelope(envelope, fallback_message)
