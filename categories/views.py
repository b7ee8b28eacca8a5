from rest_framework import status

from accounts.permissions import require
from gateway.viewsets import BackendViewSet

from .serializers import CategoryInputSerializer, CategorySerializer
from .services import CategoryService


class CategoryViewSet(BackendViewSet):

    def get_permissions(self):
        flag = {
            "create": "can_create_category",
            "update": "can_update_category",
            "destroy": "can_delete_category",
        }.get(self.action, "can_view_categories")
        return [require(flag)()]

    def get_service(self):
        return CategoryService(self.get_client())

    def list(self, request):
        result = self.get_service().get_all_categories()
        if not result.success:
            return self._result_response(result)
        items = CategorySerializer(result.data, many=True).data
        return self._api_response("success", result.message or "Categories retrieved", 200, {
            "items": items,
            "count": len(items),
        })

    def retrieve(self, request, pk=None):
        result = self.get_service().get_category_by_id(pk)
        if not result.success or not result.data:
            return self._api_response("error", result.message or "Category not found", status.HTTP_404_NOT_FOUND, {})
        return self._api_response("success", result.message, 200, CategorySerializer(result.data).data)

    def create(self, request):
        serializer = CategoryInputSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)
        result = self.get_service().create_category(serializer.to_backend())
        return self._result_response(result, success_code=201)

    def update(self, request, pk=None):
        serializer = CategoryInputSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)
        return self._result_response(self.get_service().update_category(pk, serializer.to_backend()))

    def destroy(self, request, pk=None):
        return self._result_response(self.get_service().delete_category(pk))
