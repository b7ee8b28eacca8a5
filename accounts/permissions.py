from dataclasses import asdict, dataclass

from rest_framework import permissions
from rest_framework.exceptions import PermissionDenied

from gateway.client import login_redirect_target
from gateway.exceptions import LoginRequired

from .roles import Role
from .storage import TokenStore


@dataclass(frozen=True)
class RolePermissions:
    is_user: bool
    is_admin: bool

    # complaints
    can_submit_complaint: bool
    can_view_own_complaints: bool
    can_view_all_complaints: bool
    can_update_complaint_status: bool
    can_delete_complaint: bool

    # user management
    can_view_all_users: bool
    can_create_user: bool
    can_create_admin: bool
    can_update_user: bool
    can_delete_user: bool
    can_view_user_details: bool

    # categories
    can_view_categories: bool
    can_create_category: bool
    can_update_category: bool
    can_delete_category: bool

    # statuses
    can_view_statuses: bool
    can_create_status: bool
    can_update_status: bool
    can_delete_status: bool

    # profile
    can_update_own_profile: bool
    can_view_own_profile: bool

    # dashboards
    can_view_admin_dashboard: bool
    can_view_user_dashboard: bool

    # reports
    can_view_reports: bool
    can_export_data: bool

    def as_dict(self):
        return asdict(self)


def derive_permissions(role) -> RolePermissions:
    is_admin = Role.parse(role) is Role.ADMIN
    is_user = not is_admin

    return RolePermissions(
        is_user=is_user,
        is_admin=is_admin,
        can_submit_complaint=True,
        can_view_own_complaints=True,
        can_view_all_complaints=is_admin,
        can_update_complaint_status=is_admin,
        can_delete_complaint=is_admin,
        can_view_all_users=is_admin,
        can_create_user=is_admin,
        can_create_admin=is_admin,
        can_update_user=is_admin,
        can_delete_user=is_admin,
        can_view_user_details=is_admin,
        can_view_categories=True,
        can_create_category=is_admin,
        can_update_category=is_admin,
        can_delete_category=is_admin,
        can_view_statuses=True,
        can_create_status=is_admin,
        can_update_status=is_admin,
        can_delete_status=is_admin,
        can_update_own_profile=True,
        can_view_own_profile=True,
        can_view_admin_dashboard=is_admin,
        can_view_user_dashboard=is_user,
        can_view_reports=is_admin,
        can_export_data=is_admin,
    )


def current_user(request):
    return TokenStore.for_request(request).get_user()


def permissions_for_request(request):
    user = current_user(request)
    return derive_permissions(user.get("role") if user else None)


# These gate what the client shows. The backend still authorizes every call.

class IsSignedIn(permissions.BasePermission):
    def has_permission(self, request, view):
        store = TokenStore.for_request(request)
        if store.has_token() and store.get_user() is not None:
            return True
        raise LoginRequired(redirect_to=login_redirect_target(request.get_full_path()))


class IsAdminRole(IsSignedIn):
    def has_permission(self, request, view):
        super().has_permission(request, view)
        if permissions_for_request(request).is_admin:
            return True
        raise PermissionDenied("Access Denied")


def require(permission_name):
    """Permission class requiring one flag of RolePermissions."""

    class RequiresPermission(IsSignedIn):
        def has_permission(self, request, view):
            super().has_permission(request, view)
            if getattr(permissions_for_request(request), permission_name):
                return True
            raise PermissionDenied("Insufficient Permissions")

    RequiresPermission.__name__ = f"Requires_{permission_name}"
    return RequiresPermission
