from rest_framework.exceptions import APIException


class ApiError(Exception):
    """Backend call failed. `status_code` is None for network failures."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        return self.message


class SessionExpired(ApiError):
    """Backend answered 401. The token store is already cleared when this is raised."""

    def __init__(self, message="Session expired.", redirect_to="/login"):
        super().__init__(message, status_code=401)
        self.redirect_to = redirect_to


class NotFoundError(ApiError):
    def __init__(self, message="Not found!", status_code=404):
        super().__init__(message, status_code=status_code)


def is_not_found(message):
    """The backend answers "Not found!" (HTTP 400) when a list is simply empty."""
    return (message or "").strip().rstrip("!").lower() == "not found"


class LoginRequired(APIException):
    status_code = 401
    default_detail = "Authentication required. Please log in."
    default_code = "login_required"

    def __init__(self, redirect_to="/login", detail=None):
        super().__init__(detail)
        self.redirect_to = redirect_to
