from rest_framework import viewsets

from accounts.storage import TokenStore

from .client import ApiClient
from .responses import EnvelopeMixin


class BackendViewSet(EnvelopeMixin, viewsets.ViewSet):
    """ViewSet whose services talk to the backend as the session's user."""

    def get_token_store(self):
        if not hasattr(self, "_token_store"):
            self._token_store = TokenStore.for_request(self.request)
        return self._token_store

    def get_client(self):
        if not hasattr(self, "_client"):
            self._client = ApiClient.for_request(self.request, self.get_token_store())
        return self._client
