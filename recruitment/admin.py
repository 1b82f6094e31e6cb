from django.contrib import admin

from .models import Application, ApplicationInterview, ApplicationStatusHistory, Job


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ("title", "company", "status", "referral_fee", "referral_fee_currency", "applications", "posted_at")
    list_filter = ("status", "job_type", "work_type", "category")
    search_fields = ("title", "company__company_name")
    readonly_fields = (
        "status",
        "views",
        "applications",
        "referrals",
        "referral_views",
        "referral_applications",
        "posted_at",
        "closed_at",
        "created_at",
        "updated_at",
    )


class ApplicationStatusHistoryInline(admin.TabularInline):
    model = ApplicationStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ("status", "note", "actor_kind", "actor_user", "actor_company", "created_at")


class ApplicationInterviewInline(admin.TabularInline):
    model = ApplicationInterview
    extra = 0


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ("job", "applicant", "status", "is_referral", "referred_by", "payment_status", "applied_at")
    list_filter = ("status", "is_referral", "payment_status")
    search_fields = ("applicant__email", "job__title", "referral_code", "payment_reference")
    inlines = [ApplicationStatusHistoryInline, ApplicationInterviewInline]
    readonly_fields = (
        "job",
        "applicant",
        "company",
        "referred_by",
        "referral_code",
        "is_referral",
        "status",
        "hire_recorded_at",
        "payment_is_eligible",
        "payment_amount",
        "payment_currency",
        "payment_status",
        "payment_reference",
        "payment_paid_at",
    )
