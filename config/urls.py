from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/accounts/', include('accounts.urls')),
    path('api/v1/notifications/', include('notifications.urls')),
    path('api/v1/', include('recruitment.urls')),
]
