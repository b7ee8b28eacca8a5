import logging

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

logger = logging.getLogger(__name__)

# Regular users cannot read their own profile from the backend, so the full
# name given at registration is remembered here by email.
KEY_PREFIX = "citiwatch:user-profile:"


def _key(email):
    return f"{KEY_PREFIX}{email.strip().lower()}"


def _timeout():
    return getattr(settings, "CITIWATCH_USER_CACHE_DAYS", 30) * 24 * 60 * 60


def cache_user_profile(email, full_name):
    if not email or not full_name:
        return
    cache.set(_key(email), {
        "full_name": full_name,
        "email": email,
        "cached_at": timezone.now().isoformat(),
    }, _timeout())
    logger.debug("Cached user profile for %s", email)


def get_cached_user_profile(email):
    if not email:
        return None
    return cache.get(_key(email))
