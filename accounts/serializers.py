from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from rest_framework import serializers

from .models import Company, User


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model"""

    class Meta:
        model = User
        fields = ('id', 'email', 'first_name', 'last_name', 'phone', 'is_company',
                  'referral_code', 'created_at')
        read_only_fields = ('id', 'email', 'is_company', 'referral_code', 'created_at')

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save(update_fields=list(validated_data) + ['updated_at'])
        return instance


class CompanySerializer(serializers.ModelSerializer):
    """Serializer for Company profile"""
    stats = serializers.SerializerMethodField()

    class Meta:
        model = Company
        fields = ('id', 'company_name', 'industry', 'website', 'description', 'stats', 'created_at', 'updated_at')
        read_only_fields = ('id', 'stats', 'created_at', 'updated_at')

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save(update_fields=list(validated_data) + ['updated_at'])
        return instance

    def get_stats(self, obj):
        return obj.stats()


class RegisterSerializer(serializers.Serializer):
    """Serializer for job seeker and company sign-up"""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    is_company = serializers.BooleanField(default=False)
    company_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    industry = serializers.ChoiceField(choices=Company.INDUSTRY_CHOICES, required=False)

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate_password(self, value):
        validate_password(value)
        return value

    def validate(self, data):
        if data.get('is_company') and not data.get('company_name'):
            raise serializers.ValidationError({"company_name": "Company name is required for company accounts."})
        return data

    def create(self, validated_data):
        company_name = validated_data.pop('company_name', '')
        industry = validated_data.pop('industry', 'Other')
        password = validated_data.pop('password')
        with transaction.atomic():
            user = User.objects.create_user(password=password, **validated_data)
            if user.is_company:
                Company.objects.create(user=user, company_name=company_name, industry=industry)
        return user


class LoginSerializer(serializers.Serializer):
    """Serializer for user login"""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        email = data.get('email', '').lower()
        user = authenticate(username=email, password=data.get('password'))
        if user is None:
            raise serializers.ValidationError({"email": "Invalid email or password."})
        if not user.is_active:
            raise serializers.ValidationError({"email": "Your account has been disabled. Please contact the administrator."})
        data['user'] = user
        return data


class ReferralStatsSerializer(serializers.Serializer):
    referral_code = serializers.CharField()
    total_referrals = serializers.IntegerField()
    successful_referrals = serializers.IntegerField()
    total_earnings = serializers.DecimalField(max_digits=12, decimal_places=2)
    pending_earnings = serializers.DecimalField(max_digits=12, decimal_places=2)
    paid_earnings = serializers.DecimalField(max_digits=12, decimal_places=2)
    success_rate = serializers.IntegerField()
