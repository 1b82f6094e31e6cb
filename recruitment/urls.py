from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ApplicationViewSet, JobViewSet

router = DefaultRouter()
router.register(r"jobs", JobViewSet, basename="recruitment-job")
router.register(r"applications", ApplicationViewSet, basename="recruitment-application")

urlpatterns = [
    path("", include(router.urls)),
]
