import random
import re
from decimal import Decimal

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

REFERRAL_CODE_PREFIX = "REF"
REFERRAL_CODE_NAME_LENGTH = 8
REFERRAL_CODE_ATTEMPTS = 20

# Earnings are stored as integer minor units (pence, cents) so the balance
# check compares exact values on every backend, SQLite included.
MINOR_UNITS = 100


def to_minor_units(amount) -> int:
    return int((Decimal(str(amount or 0)) * MINOR_UNITS).quantize(Decimal("1")))


def from_minor_units(value) -> Decimal:
    return (Decimal(value or 0) / MINOR_UNITS).quantize(Decimal("0.01"))


def build_referral_code(first_name: str) -> str:
    """REF-<NAME>-<6 digits>, NAME being the first name reduced to A-Z."""
    name = re.sub(r"[^A-Z]", "", (first_name or "").upper())[:REFERRAL_CODE_NAME_LENGTH] or "USER"
    return f"{REFERRAL_CODE_PREFIX}-{name}-{random.randint(100000, 999999)}"


class CustomUserManager(BaseUserManager):
    """Custom user manager where email is the unique identifier"""

    def create_user(self, email, password=None, **extra_fields):
        """Create and save a regular user with the given email and password"""
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Create and save a superuser with the given email and password"""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)

    def get_by_referral_code(self, code):
        if not code:
            return None
        return self.filter(referral_code=str(code).strip().upper(), is_active=True).first()


class User(AbstractUser):
    """
    Login identity shared by job seekers and company accounts.

    Job seekers carry a referral code and the referral counters; company
    logins own a Company profile instead.
    """

    username = None
    email = models.EmailField(unique=True, db_index=True)
    is_company = models.BooleanField(default=False, help_text='Designates whether the login belongs to a company')
    phone = models.CharField(max_length=50, blank=True, null=True)

    referral_code = models.CharField(max_length=32, unique=True, null=True, blank=True, db_index=True)
    total_referrals = models.PositiveIntegerField(default=0)
    successful_referrals = models.PositiveIntegerField(default=0)
    total_earnings_minor = models.BigIntegerField(default=0)
    pending_earnings_minor = models.BigIntegerField(default=0)
    paid_earnings_minor = models.BigIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        constraints = [
            models.CheckConstraint(
                condition=Q(total_earnings_minor=F("pending_earnings_minor") + F("paid_earnings_minor")),
                name="users_earnings_balanced",
            ),
            models.CheckConstraint(
                condition=Q(pending_earnings_minor__gte=0) & Q(paid_earnings_minor__gte=0),
                name="users_earnings_non_negative",
            ),
        ]

    def __str__(self):
        return self.email

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._stored_referral_code = instance.__dict__.get("referral_code")
        return instance

    def save(self, *args, **kwargs):
        stored = getattr(self, "_stored_referral_code", None)
        if stored and self.referral_code != stored:
            raise ValidationError("Referral codes cannot be changed once issued.")
        if not self.is_company and not self.referral_code:
            self.referral_code = self._generate_unique_referral_code()
        if self.referral_code:
            self.referral_code = self.referral_code.upper()
        super().save(*args, **kwargs)
        self._stored_referral_code = self.referral_code

    def _generate_unique_referral_code(self) -> str:
        for _ in range(REFERRAL_CODE_ATTEMPTS):
            candidate = build_referral_code(self.first_name)
            if not User.objects.filter(referral_code=candidate).exists():
                return candidate
        raise ValidationError("Could not allocate a unique referral code.")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def total_earnings(self) -> Decimal:
        return from_minor_units(self.total_earnings_minor)

    @property
    def pending_earnings(self) -> Decimal:
        return from_minor_units(self.pending_earnings_minor)

    @property
    def paid_earnings(self) -> Decimal:
        return from_minor_units(self.paid_earnings_minor)

    @property
    def success_rate(self) -> int:
        if not self.total_referrals:
            return 0
        return round(self.successful_referrals * 100 / self.total_referrals)

    def referral_stats(self) -> dict:
        return {
            "total_referrals": self.total_referrals,
            "successful_referrals": self.successful_referrals,
            "total_earnings": self.total_earnings,
            "pending_earnings": self.pending_earnings,
            "paid_earnings": self.paid_earnings,
            "success_rate": self.success_rate,
        }


class Company(models.Model):
    """Company profile owned by a company login."""

    INDUSTRY_CHOICES = [
        ('Technology', 'Technology'),
        ('Finance', 'Finance'),
        ('Healthcare', 'Healthcare'),
        ('Education', 'Education'),
        ('Retail', 'Retail'),
        ('Manufacturing', 'Manufacturing'),
        ('Construction', 'Construction'),
        ('Marketing', 'Marketing'),
        ('Legal', 'Legal'),
        ('Consulting', 'Consulting'),
        ('Other', 'Other'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='company')
    company_name = models.CharField(max_length=100, db_index=True)
    industry = models.CharField(max_length=50, choices=INDUSTRY_CHOICES, default='Other')
    website = models.URLField(blank=True, null=True)
    description = models.TextField(blank=True, null=True)

    total_jobs_posted = models.PositiveIntegerField(default=0)
    active_jobs = models.PositiveIntegerField(default=0)
    total_applications = models.PositiveIntegerField(default=0)
    total_hires = models.PositiveIntegerField(default=0)
    total_referrals_paid = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'companies'
        verbose_name = 'Company'
        verbose_name_plural = 'Companies'
        ordering = ['company_name']

    def __str__(self):
        return self.company_name

    def stats(self) -> dict:
        return {
            "total_jobs_posted": self.total_jobs_posted,
            "active_jobs": self.active_jobs,
            "total_applications": self.total_applications,
            "total_hires": self.total_hires,
            "total_referrals_paid": self.total_referrals_paid,
        }
