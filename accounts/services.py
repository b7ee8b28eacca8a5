import logging
import re

import jwt

from gateway.exceptions import ApiError, SessionExpired
from gateway.results import ServiceResult
from gateway.services import BackendService

from .cache import cache_user_profile, get_cached_user_profile
from .roles import Role

logger = logging.getLogger(__name__)

ROLE_CLAIM = "http://schemas.microsoft.com/ws/2008/06/identity/claims/role"
HTTP_PREFIX = re.compile(r"^HTTP \d+:\s*")


def decode_claims(token):
    """Reads the JWT payload without verifying it; the backend owns the key."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        logger.warning("Could not decode auth token: %s", e)
        return {}


def user_from_claims(claims, email):
    email = claims.get("email") or email
    full_name = claims.get("name")
    if not full_name:
        cached = get_cached_user_profile(email)
        full_name = cached["full_name"] if cached else email

    return {
        "id": claims.get("sub") or claims.get("nameid"),
        "email": email,
        "full_name": full_name,
        "role": Role.parse(claims.get(ROLE_CLAIM) or claims.get("role") or "User").label,
    }


class AuthService(BackendService):

    def __init__(self, client, token_store):
        super().__init__(client)
        self.token_store = token_store

    def login(self, email, password):
        try:
            response = self.client.post("/User/Login", {"email": email, "password": password})
        except SessionExpired:
            # wrong credentials come back as 401 too
            return ServiceResult.failure("Invalid email or password")
        except ApiError as e:
            return ServiceResult.failure(HTTP_PREFIX.sub("", e.message or "") or "Login failed")

        token = response.get("token") if isinstance(response, dict) else None
        if not token and isinstance(response, dict) and isinstance(response.get("data"), dict):
            token = response["data"].get("token")
        if not token:
            return ServiceResult.failure("Login failed")

        claims = decode_claims(token)
        logger.debug("JWT claims: %s", claims)
        user = user_from_claims(claims, email)

        self.token_store.set_token(token)
        self.token_store.set_user(user)
        return ServiceResult(success=True, message="Login successful", data=user)

    def register(self, full_name, email, password):
        result = self._call(
            lambda: self.client.post("/User/Create", {
                "fullName": full_name,
                "email": email,
                "password": password,
            }),
            "Registration failed",
        )
        if result.success:
            cache_user_profile(email, full_name)
        return result

    def logout(self):
        self.token_store.clear_auth()

    def get_user(self):
        return self.token_store.get_user()

    def is_admin(self):
        user = self.get_user()
        return bool(user) and Role.parse(user.get("role")) is Role.ADMIN

    def complaints_endpoint(self):
        if self.is_admin():
            return "/Complaint/GetAll"
        return "/Complaint/GetAllUserComplaints"


class UserService(BackendService):

    def get_all_users(self):
        return self._call(lambda: self.client.get("/User/GetAll"), "Failed to fetch users")

    def get_current_user_profile(self, user_id):
        # only admins may call GetAll; regular users get a 403 here
        result = self._call(
            lambda: self.client.get("/User/GetAll"),
            "Access denied - unable to fetch user profile",
        )
        if not result.success:
            return result
        for user in result.data or []:
            if user.get("id") == user_id:
                return ServiceResult(success=True, message="User profile retrieved successfully", data=user)
        return ServiceResult.failure("User not found in results")

    def get_user(self, user_id):
        return self.get_current_user_profile(user_id)

    def create_user(self, full_name, email, password):
        return self._call(
            lambda: self.client.post("/User/Create", {
                "fullName": full_name,
                "email": email,
                "password": password,
            }),
            "Failed to create user",
        )

    def create_admin_user(self, full_name, email, password):
        return self._call(
            lambda: self.client.post("/User/CreateAdmin", {
                "fullName": full_name,
                "email": email,
                "password": password,
            }),
            "Failed to create admin user",
        )

    def update_user(self, user_id, full_name, email):
        return self._call(
            lambda: self.client.put(f"/User/Update/{user_id}", {"fullName": full_name, "email": email}),
            "Failed to update user",
        )

    def delete_user(self, user_id):
        return self._call(
            lambda: self.client.post(f"/User/Delete/{user_id}", {}),
            "Failed to delete user",
        )
