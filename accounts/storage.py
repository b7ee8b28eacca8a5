import json
import logging
import time

from django.conf import settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "authToken"
USER_KEY = "userData"
DEFAULT_MAX_AGE_MS = 24 * 60 * 60 * 1000


def generate_checksum(data: str) -> str:
    """32-bit rolling hash over UTF-16 code units, as a signed decimal string."""
    h = 0
    raw = data.encode("utf-16-le")
    for i in range(0, len(raw), 2):
        code_unit = raw[i] | (raw[i + 1] << 8)
        h = ((h << 5) - h + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(h)


def _now_ms():
    return int(time.time() * 1000)


class TokenStore:
    """
    Auth token and user profile over any mutable mapping.

    In a request the mapping is `request.session`; management commands and
    tests pass a plain dict. With `secure=True` every value is wrapped as
    {"data", "timestamp", "checksum"} and checked on read. A failed check
    removes the entry and reads as absent.
    """

    def __init__(self, backend, secure=None, max_age_ms=None):
        self.backend = backend
        if secure is None:
            secure = getattr(settings, "CITIWATCH_SECURE_TOKEN_STORAGE", not settings.DEBUG)
        self.secure = secure
        if max_age_ms is None:
            max_age_ms = getattr(settings, "CITIWATCH_TOKEN_MAX_AGE_MS", DEFAULT_MAX_AGE_MS)
        self.max_age_ms = max_age_ms

    @classmethod
    def for_request(cls, request):
        return cls(request.session)

    def set_token(self, token: str) -> None:
        self._set(TOKEN_KEY, token)

    def get_token(self):
        return self._get(TOKEN_KEY)

    def has_token(self) -> bool:
        return self.get_token() is not None

    def set_user(self, user: dict) -> None:
        self._set(USER_KEY, json.dumps(user))

    def get_user(self):
        raw = self._get(USER_KEY)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Stored user data is not valid JSON, discarding it")
            self._remove(USER_KEY)
            return None

    def clear_auth(self) -> None:
        self._remove(TOKEN_KEY)
        self._remove(USER_KEY)

    def _set(self, key, value):
        if self.secure:
            value = json.dumps({
                "data": value,
                "timestamp": _now_ms(),
                "checksum": generate_checksum(value),
            })
        self.backend[key] = value

    def _get(self, key):
        stored = self.backend.get(key)
        if stored is None:
            return None
        if not self.secure:
            return stored

        try:
            wrapped = json.loads(stored)
            data = wrapped["data"]
            checksum = wrapped["checksum"]
            timestamp = int(wrapped["timestamp"])
        except (TypeError, ValueError, KeyError):
            logger.warning("Stored %s is unreadable, discarding it", key)
            self._remove(key)
            return None

        if not isinstance(data, str) or checksum != generate_checksum(data):
            logger.warning("Integrity check failed for %s", key)
            self._remove(key)
            return None

        if _now_ms() - timestamp > self.max_age_ms:
            logger.warning("%s expired due to age", key)
            self._remove(key)
            return None

        return data

    def _remove(self, key):
        self.backend.pop(key, None)
