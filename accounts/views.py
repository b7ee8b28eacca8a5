from rest_framework import status
from rest_framework.decorators import action

from gateway.handlers import AUTH_COOKIE
from gateway.viewsets import BackendViewSet

from .permissions import IsAdminRole, IsSignedIn, derive_permissions, require
from .roles import Role
from .serializers import (
    LoginSerializer,
    NewUserSerializer,
    RegisterSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from .services import AuthService, UserService

AUTH_COOKIE_MAX_AGE = 3 * 60 * 60


class AuthViewSet(BackendViewSet):

    def get_service(self):
        return AuthService(self.get_client(), self.get_token_store())

    @action(detail=False, methods=["post"], url_path="login")
    def login(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)

        result = self.get_service().login(**serializer.validated_data)
        if not result.success:
            return self._api_response("error", result.message, status.HTTP_400_BAD_REQUEST, {})

        user = result.data
        response = self._api_response("success", result.message, 200, {
            "user": user,
            "permissions": derive_permissions(user["role"]).as_dict(),
            "redirect": "/admin" if Role.parse(user["role"]) is Role.ADMIN else "/dashboard",
        })
        # read by the page middleware, hence not httpOnly
        response.set_cookie(
            AUTH_COOKIE,
            self.get_token_store().get_token(),
            max_age=AUTH_COOKIE_MAX_AGE,
            path="/",
            samesite="Lax",
        )
        return response

    @action(detail=False, methods=["post"], url_path="register")
    def register(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)

        data = serializer.validated_data
        result = self.get_service().register(data["full_name"], data["email"], data["password"])
        return self._result_response(result, success_code=201)

    @action(detail=False, methods=["post"], url_path="logout")
    def logout(self, request):
        self.get_service().logout()
        response = self._api_response("success", "Logged out", 200, {"redirect": "/login"})
        response.delete_cookie(AUTH_COOKIE, path="/")
        return response

    @action(detail=False, methods=["get"], url_path="me", permission_classes=[IsSignedIn])
    def me(self, request):
        user = self.get_token_store().get_user()
        return self._api_response("success", "Current user", 200, {
            "user": user,
            "permissions": derive_permissions(user.get("role")).as_dict(),
        })


class UserViewSet(BackendViewSet):

    def get_permissions(self):
        flag = {
            "list": "can_view_all_users",
            "retrieve": "can_view_user_details",
            "create": "can_create_user",
            "update": "can_update_user",
            "destroy": "can_delete_user",
            "create_admin": "can_create_admin",
        }.get(self.action, "can_view_all_users")
        return [IsAdminRole(), require(flag)()]

    def get_service(self):
        return UserService(self.get_client())

    def list(self, request):
        result = self.get_service().get_all_users()
        if not result.success:
            return self._result_response(result)
        items = UserSerializer(result.data or [], many=True).data
        return self._api_response("success", result.message or "Users retrieved", 200, {
            "items": items,
            "count": len(items),
        })

    def retrieve(self, request, pk=None):
        result = self.get_service().get_user(pk)
        if not result.success:
            return self._api_response("error", result.message, status.HTTP_404_NOT_FOUND, {})
        return self._api_response("success", result.message, 200, UserSerializer(result.data).data)

    def create(self, request):
        serializer = NewUserSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)
        data = serializer.validated_data
        result = self.get_service().create_user(data["full_name"], data["email"], data["password"])
        return self._result_response(result, success_code=201)

    def update(self, request, pk=None):
        serializer = UserUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)
        data = serializer.validated_data
        result = self.get_service().update_user(pk, data["full_name"], data["email"])
        return self._result_response(result)

    def destroy(self, request, pk=None):
        return self._result_response(self.get_service().delete_user(pk))

    @action(detail=False, methods=["post"], url_path="create-admin")
    def create_admin(self, request):
        serializer = NewUserSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)
        data = serializer.validated_data
        result = self.get_service().create_admin_user(data["full_name"], data["email"], data["password"])
        return self._result_response(result, success_code=201)
