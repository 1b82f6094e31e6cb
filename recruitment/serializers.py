from rest_framework import serializers

from .models import Application, ApplicationInterview, ApplicationStatusHistory, Job
from .utils import sanitize_custom_responses, sanitize_rich_text, sanitize_text


class JobSerializer(serializers.ModelSerializer):
    company_id = serializers.IntegerField(read_only=True)
    company_name = serializers.CharField(source="company.company_name", read_only=True)
    is_accepting_applications = serializers.SerializerMethodField()
    stats = serializers.SerializerMethodField()

    class Meta:
        model = Job
        fields = [
            "id",
            "company_id",
            "company_name",
            "title",
            "description",
            "job_type",
            "work_type",
            "experience_level",
            "category",
            "location_city",
            "location_country",
            "referral_fee",
            "referral_fee_currency",
            "status",
            "application_deadline",
            "max_applications",
            "is_accepting_applications",
            "stats",
            "posted_at",
            "closed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["status", "posted_at", "closed_at", "created_at", "updated_at"]

    def get_is_accepting_applications(self, obj):
        return obj.is_accepting_applications()

    def get_stats(self, obj):
        return {
            "views": obj.views,
            "applications": obj.applications,
            "referrals": obj.referrals,
            "referral_views": obj.referral_views,
            "referral_applications": obj.referral_applications,
        }

    def validate_title(self, value):
        return sanitize_text(value)

    def validate_description(self, value):
        return sanitize_rich_text(value)

    def validate_referral_fee(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Referral fee cannot be negative.")
        return value


class JobCreateSerializer(JobSerializer):
    status = serializers.ChoiceField(
        choices=[Job.STATUS_DRAFT, Job.STATUS_ACTIVE],
        required=False,
        default=Job.STATUS_DRAFT,
    )

    class Meta(JobSerializer.Meta):
        read_only_fields = ["posted_at", "closed_at", "created_at", "updated_at"]


class JobStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Job.STATUS_CHOICES)


class ApplicationStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ApplicationStatusHistory
        fields = ["status", "note", "actor_kind", "actor_user", "actor_company", "created_at"]
        read_only_fields = fields


class ApplicationInterviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = ApplicationInterview
        fields = [
            "id",
            "interview_type",
            "scheduled_at",
            "duration_minutes",
            "location",
            "meeting_link",
            "interviewer_name",
            "instructions",
            "status",
            "created_at",
        ]
        read_only_fields = ["id", "status", "created_at"]


class ApplicationSerializer(serializers.ModelSerializer):
    job_title = serializers.CharField(source="job.title", read_only=True)
    applicant_email = serializers.EmailField(source="applicant.email", read_only=True)
    applicant_name = serializers.CharField(source="applicant.full_name", read_only=True)
    referral_payment = serializers.SerializerMethodField()
    company_feedback = serializers.SerializerMethodField()
    status_history = ApplicationStatusHistorySerializer(many=True, read_only=True)
    interviews = ApplicationInterviewSerializer(many=True, read_only=True)

    class Meta:
        model = Application
        fields = [
            "id",
            "job",
            "job_title",
            "company",
            "applicant",
            "applicant_email",
            "applicant_name",
            "referred_by",
            "referral_code",
            "is_referral",
            "application_source",
            "cover_letter",
            "custom_responses",
            "status",
            "status_history",
            "interviews",
            "referral_payment",
            "company_feedback",
            "applied_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_company_feedback(self, obj):
        request = self.context.get("request")
        user = getattr(request, "user", None)
        company = getattr(user, "company", None) if user and user.is_authenticated and user.is_company else None
        is_owner = company is not None and company.pk == obj.company_id
        return obj.company_feedback(include_notes=is_owner)

    def get_referral_payment(self, obj):
        if not obj.is_referral:
            return None
        payment = obj.referral_payment
        payment["amount"] = str(payment["amount"])
        return payment


class ApplicationSubmitSerializer(serializers.Serializer):
    job_id = serializers.IntegerField()
    referral_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    cover_letter = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    custom_responses = serializers.ListField(child=serializers.DictField(), required=False)

    def validate_cover_letter(self, value):
        return sanitize_rich_text(value)

    def validate_custom_responses(self, value):
        return sanitize_custom_responses(value)


class CompanyFeedbackSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    strengths = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    concerns = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    recommendation = serializers.ChoiceField(choices=Application.RECOMMENDATION_CHOICES, required=False)

    def validate_notes(self, value):
        return sanitize_rich_text(value)

    def validate_strengths(self, value):
        return [sanitize_text(item) for item in value]

    def validate_concerns(self, value):
        return [sanitize_text(item) for item in value]


class ApplicationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Application.STATUS_CHOICES)
    note = serializers.CharField(required=False, allow_blank=True, max_length=500)
    rating = serializers.IntegerField(required=False, min_value=1, max_value=5)
    feedback = CompanyFeedbackSerializer(required=False)

    def feedback_payload(self):
        """Flatten `rating` and the nested `feedback` object into one dict."""
        feedback = dict(self.validated_data.get("feedback") or {})
        if self.validated_data.get("rating") is not None:
            feedback["rating"] = self.validated_data["rating"]
        return feedback or None


class ApplicationWithdrawSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class ReferralPaymentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[Application.PAYMENT_PROCESSING, Application.PAYMENT_PAID, Application.PAYMENT_FAILED],
    )
    reference = serializers.CharField(required=False, allow_blank=True, max_length=64)
    reason = serializers.CharField(required=False, allow_blank=True)
