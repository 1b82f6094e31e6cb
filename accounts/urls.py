from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    CompanyProfileView, LoginView, ReferralStatsView,
    RegisterView, UserProfileView
)

app_name = 'accounts'

urlpatterns = [
    # Authentication endpoints
    path('auth/register/', RegisterView.as_view(), name='register'),
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # Profile endpoints
    path('me/', UserProfileView.as_view(), name='user-profile'),
    path('me/referral-stats/', ReferralStatsView.as_view(), name='referral-stats'),
    path('company/profile/', CompanyProfileView.as_view(), name='company-profile'),
]
