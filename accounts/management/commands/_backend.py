from django.conf import settings
from django.core.management.base import CommandError

from gateway.client import ApiClient

from ...services import AuthService
from ...storage import TokenStore


def add_operator_arguments(parser):
    parser.add_argument("--admin-email", default=None, help="Existing admin used to call the backend")
    parser.add_argument("--admin-password", default=None)


def operator_client(options):
    """ApiClient logged in as an existing admin, with an in-memory token store."""
    email = options.get("admin_email") or settings.CITIWATCH_ADMIN_EMAIL
    password = options.get("admin_password") or settings.CITIWATCH_ADMIN_PASSWORD
    if not email or not password:
        raise CommandError("Admin credentials required: --admin-email/--admin-password or CITIWATCH_ADMIN_EMAIL/PASSWORD")

    store = TokenStore({}, secure=False)
    client = ApiClient(token_store=store)
    result = AuthService(client, store).login(email, password)
    if not result.success:
        raise CommandError(f"Login as {email} failed: {result.message}")
    return client
