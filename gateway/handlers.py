import logging

from django.conf import settings
from rest_framework.views import exception_handler

from .exceptions import ApiError, LoginRequired, SessionExpired
from .responses import api_response

logger = logging.getLogger(__name__)

AUTH_COOKIE = "token"


def session_expired_response(exc):
    response = api_response(
        "error",
        exc.message,
        401,
        {"redirect": exc.redirect_to},
    )
    delay = getattr(settings, "CITIWATCH_SESSION_EXPIRED_REDIRECT_DELAY", 2)
    response["Refresh"] = f"{delay}; url={exc.redirect_to}"
    response.delete_cookie(AUTH_COOKIE, path="/")
    return response


def envelope_exception_handler(exc, context):
    """Every failure leaves the API as an error envelope."""
    if isinstance(exc, SessionExpired):
        return session_expired_response(exc)

    if isinstance(exc, LoginRequired):
        return api_response("error", str(exc.detail), 401, {"redirect": exc.redirect_to})

    if isinstance(exc, ApiError):
        code = exc.status_code if exc.status_code and exc.status_code >= 400 else 502
        return api_response("error", exc.message, code, {})

    response = exception_handler(exc, context)
    if response is not None:
        detail = response.data
        if isinstance(detail, dict) and "detail" in detail:
            message = str(detail["detail"])
        else:
            message = "Invalid input"
        return api_response("error", message, response.status_code, detail)

    logger.exception("Unhandled error in %s", context.get("view").__class__.__name__)
    return api_response(
        "error",
        "Something went wrong. Please reload the page or go back home.",
        500,
        {},
    )
