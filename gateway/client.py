import json
import logging
from urllib.parse import quote

import requests
from django.conf import settings

from .exceptions import ApiError, NotFoundError, SessionExpired

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5182/api"


def extract_error_message(response):
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("message") or body.get("Message")
        if message:
            return message

    text = (response.text or "").strip()
    if text:
        return text
    return response.reason or f"HTTP {response.status_code}"


def login_redirect_target(current_path=None):
    if not current_path:
        return "/login"
    return f"/login?redirect={quote(current_path, safe='')}"


class ApiClient:
    """
    Talks to the CitiWatch REST backend.

    `token_store` is anything with get_token()/clear_auth(); the bearer token
    is read from it on every call. `current_path` is where the user gets sent
    back to after logging in again when the backend answers 401.
    """

    def __init__(self, token_store=None, base_url=None, timeout=None, current_path=None):
        self.token_store = token_store
        self.base_url = (base_url or getattr(settings, "CITIWATCH_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = timeout or getattr(settings, "CITIWATCH_API_TIMEOUT", 10)
        self.current_path = current_path

    @classmethod
    def for_request(cls, request, token_store):
        return cls(token_store=token_store, current_path=request.get_full_path())

    def get(self, endpoint):
        return self._request("GET", endpoint)

    def post(self, endpoint, data=None):
        return self._request("POST", endpoint, json_body=data)

    def put(self, endpoint, data=None):
        return self._request("PUT", endpoint, json_body=data)

    def delete(self, endpoint):
        return self._request("DELETE", endpoint)

    def post_form(self, endpoint, fields, files):
        return self._request("POST", endpoint, form=fields, files=files)

    def _url(self, endpoint):
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _headers(self, is_multipart):
        headers = {}
        # requests writes the multipart boundary itself
        if not is_multipart:
            headers["Content-Type"] = "application/json"
        token = self.token_store.get_token() if self.token_store is not None else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method, endpoint, json_body=None, form=None, files=None):
        url = self._url(endpoint)
        is_multipart = files is not None
        headers = self._headers(is_multipart)
        logger.info("API request %s %s (token=%s)", method, url, "Authorization" in headers)

        kwargs = {"headers": headers, "timeout": self.timeout}
        if is_multipart:
            kwargs["data"] = form or {}
            kwargs["files"] = files
        elif json_body is not None:
            kwargs["data"] = json.dumps(json_body)

        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error("API request %s %s failed: %s", method, url, e)
            raise ApiError(f"Network error: {e}") from e

        if response.status_code == 401:
            self._expire_session()

        if not 200 <= response.status_code < 300:
            message = extract_error_message(response)
            logger.warning("API %s %s -> %s: %s", method, url, response.status_code, message)
            error_cls = NotFoundError if response.status_code == 404 else ApiError
            raise error_cls(message, status_code=response.status_code)

        return self._parse_body(response)

    def _expire_session(self):
        if self.token_store is not None:
            self.token_store.clear_auth()
        target = login_redirect_target(self.current_path)
        logger.warning("Backend rejected the session, redirecting to %s", target)
        raise SessionExpired(redirect_to=target)

    def _parse_body(self, response):
        try:
            return response.json()
        except ValueError:
            pass
        # some endpoints answer with a JSON body but a text/plain content type
        try:
            return json.loads(response.text)
        except ValueError as e:
            raise ApiError("Invalid JSON response from server", status_code=response.status_code) from e
