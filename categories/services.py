from gateway.services import BackendService


class CategoryService(BackendService):

    def get_all_categories(self):
        result = self._call(lambda: self.client.get("/Category/GetAll"), "Failed to fetch categories")
        if result.success and result.data is None:
            result.data = []
        return result

    def get_category_by_id(self, category_id):
        return self._call(
            lambda: self.client.get(f"/Category/Get/{category_id}"),
            "Failed to fetch category",
        )

    def create_category(self, category):
        return self._call(
            lambda: self.client.post("/Category/Create", category),
            "Failed to create category",
        )

    def update_category(self, category_id, category):
        return self._call(
            lambda: self.client.put(f"/Category/Update/{category_id}", category),
            "Failed to update category",
        )

    def delete_category(self, category_id):
        # the backend soft-deletes through PUT
        return self._call(
            lambda: self.client.put(f"/Category/Delete/{category_id}", {}),
            "Failed to delete category",
        )
