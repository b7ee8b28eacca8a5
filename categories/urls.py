from rest_framework.routers import SimpleRouter
from .views import CategoryViewSet

app_name = "categories"

router = SimpleRouter(trailing_slash=False)
router.register("", CategoryViewSet, basename="categories")

urlpatterns = router.urls
