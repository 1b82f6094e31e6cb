from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Company, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for User model"""

    list_display = ('email', 'is_company', 'referral_code', 'total_referrals', 'pending_earnings', 'is_active', 'created_at')
    list_filter = ('is_company', 'is_active', 'is_staff', 'created_at')
    search_fields = ('email', 'first_name', 'last_name', 'referral_code')
    ordering = ('-created_at',)

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal Info', {'fields': ('first_name', 'last_name', 'phone')}),
        ('Permissions', {'fields': ('is_active', 'is_company', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Referrals', {'fields': ('referral_code', 'total_referrals', 'successful_referrals',
                                  'total_earnings', 'pending_earnings', 'paid_earnings')}),
        ('Important dates', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'is_company'),
        }),
    )

    readonly_fields = ('referral_code', 'total_referrals', 'successful_referrals', 'total_earnings',
                       'pending_earnings', 'paid_earnings', 'created_at', 'updated_at')


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    """Admin interface for Company model"""

    list_display = ('company_name', 'industry', 'active_jobs', 'total_applications', 'total_hires', 'created_at')
    list_filter = ('industry',)
    search_fields = ('company_name', 'user__email')
    readonly_fields = ('total_jobs_posted', 'active_jobs', 'total_applications', 'total_hires',
                       'total_referrals_paid', 'created_at', 'updated_at')
