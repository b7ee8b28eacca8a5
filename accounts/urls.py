from rest_framework.routers import SimpleRouter
from .views import AuthViewSet, UserViewSet

app_name = "accounts"

router = SimpleRouter(trailing_slash=False)
router.register("auth", AuthViewSet, basename="auth")
router.register("users", UserViewSet, basename="users")

urlpatterns = router.urls
