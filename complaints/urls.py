from rest_framework.routers import SimpleRouter
from .views import ComplaintViewSet

app_name = "complaints"

router = SimpleRouter(trailing_slash=False)
router.register("", ComplaintViewSet, basename="complaints")

urlpatterns = router.urls
