from rest_framework.routers import SimpleRouter
from .views import StatusViewSet

app_name = "statuses"

router = SimpleRouter(trailing_slash=False)
router.register("", StatusViewSet, basename="statuses")

urlpatterns = router.urls
