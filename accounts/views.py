import logging

from django.contrib.auth import get_user_model
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import permissions, status
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from .permissions import IsCompany, IsJobSeeker
from .serializers import (
    CompanySerializer, LoginSerializer, ReferralStatsSerializer,
    RegisterSerializer, UserSerializer
)
from .utils import api_response

logger = logging.getLogger(__name__)

User = get_user_model()


def _token_payload(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


@method_decorator(ratelimit(key='ip', rate='10/h', method='POST'), name='dispatch')
class RegisterView(APIView):
    """Sign up as a job seeker or a company"""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return api_response(
                success=False,
                message='Registration failed.',
                errors=serializer.errors,
                status=status.HTTP_400_BAD_REQUEST
            )

        user = serializer.save()
        logger.info("User registered", extra={'user_id': user.pk, 'is_company': user.is_company})
        return api_response(
            success=True,
            message='Registration successful.',
            data={'user': UserSerializer(user).data, 'tokens': _token_payload(user)},
            status=status.HTTP_201_CREATED
        )


@method_decorator(ratelimit(key='ip', rate='20/h', method='POST'), name='dispatch')
class LoginView(APIView):
    """View for user login with JWT"""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)

        if serializer.is_valid():
            user = serializer.validated_data['user']
            return api_response(
                success=True,
                message='Login successful.',
                data={'user': UserSerializer(user).data, 'tokens': _token_payload(user)},
                status=status.HTTP_200_OK
            )

        return api_response(
            success=False,
            message='Login failed.',
            errors=serializer.errors,
            status=status.HTTP_400_BAD_REQUEST
        )


class UserProfileView(APIView):
    """View to get or update the current user profile"""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        user = request.user
        user_data = UserSerializer(user).data

        if user.is_company and hasattr(user, 'company'):
            user_data['company'] = CompanySerializer(user.company).data

        return api_response(
            success=True,
            message='User profile retrieved successfully.',
            data=user_data,
            status=status.HTTP_200_OK
        )

    def patch(self, request):
        serializer = UserSerializer(request.user, data=request.data, partial=True)
        if not serializer.is_valid():
            return api_response(
                success=False,
                message='Profile update failed.',
                errors=serializer.errors,
                status=status.HTTP_400_BAD_REQUEST
            )
        serializer.save()
        return api_response(
            success=True,
            message='Profile updated successfully.',
            data=serializer.data,
            status=status.HTTP_200_OK
        )


class CompanyProfileView(APIView):
    """View to get or update the company profile of a company login"""

    permission_classes = [permissions.IsAuthenticated, IsCompany]

    def get(self, request):
        return api_response(
            success=True,
            message='Company profile retrieved successfully.',
            data=CompanySerializer(request.user.company).data,
            status=status.HTTP_200_OK
        )

    def patch(self, request):
        serializer = CompanySerializer(request.user.company, data=request.data, partial=True)
        if not serializer.is_valid():
            return api_response(
                success=False,
                message='Company profile update failed.',
                errors=serializer.errors,
                status=status.HTTP_400_BAD_REQUEST
            )
        serializer.save()
        return api_response(
            success=True,
            message='Company profile updated successfully.',
            data=serializer.data,
            status=status.HTTP_200_OK
        )


class ReferralStatsView(APIView):
    """Referral code and earnings summary for the current job seeker"""

    permission_classes = [permissions.IsAuthenticated, IsJobSeeker]

    def get(self, request):
        user = User.objects.get(pk=request.user.pk)
        payload = dict(user.referral_stats(), referral_code=user.referral_code)
        return api_response(
            success=True,
            message='Referral stats retrieved successfully.',
            data=ReferralStatsSerializer(payload).data,
            status=status.HTTP_200_OK
        )
