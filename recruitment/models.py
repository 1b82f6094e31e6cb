from decimal import Decimal

from django.conf import settings as django_settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from accounts.utils import ACTOR_COMPANY, ACTOR_KIND_CHOICES, ACTOR_SYSTEM, ACTOR_USER, Actor

CURRENCY_CHOICES = [
    ("GBP", "GBP"),
    ("USD", "USD"),
    ("EUR", "EUR"),
]


class Job(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_ACTIVE = "active"
    STATUS_PAUSED = "paused"
    STATUS_CLOSED = "closed"
    STATUS_FILLED = "filled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_PAUSED, "Paused"),
        (STATUS_CLOSED, "Closed"),
        (STATUS_FILLED, "Filled"),
    ]

    CLOSING_STATUSES = {STATUS_CLOSED, STATUS_FILLED}

    JOB_TYPE_CHOICES = [
        ("full-time", "Full-time"),
        ("part-time", "Part-time"),
        ("contract", "Contract"),
        ("temporary", "Temporary"),
        ("internship", "Internship"),
    ]

    WORK_TYPE_CHOICES = [
        ("remote", "Remote"),
        ("hybrid", "Hybrid"),
        ("on-site", "On-site"),
    ]

    EXPERIENCE_LEVEL_CHOICES = [
        ("entry", "Entry"),
        ("mid", "Mid"),
        ("senior", "Senior"),
        ("lead", "Lead"),
        ("executive", "Executive"),
    ]

    CATEGORY_CHOICES = [
        ("Engineering", "Engineering"),
        ("Design", "Design"),
        ("Product", "Product"),
        ("Marketing", "Marketing"),
        ("Sales", "Sales"),
        ("Customer Success", "Customer Success"),
        ("Operations", "Operations"),
        ("Finance", "Finance"),
        ("HR", "HR"),
        ("Legal", "Legal"),
        ("Data Science", "Data Science"),
        ("Security", "Security"),
        ("Other", "Other"),
    ]

    company = models.ForeignKey("accounts.Company", on_delete=models.PROTECT, related_name="jobs")

    title = models.CharField(max_length=100)
    description = models.TextField()
    job_type = models.CharField(max_length=20, choices=JOB_TYPE_CHOICES, default="full-time", db_index=True)
    work_type = models.CharField(max_length=20, choices=WORK_TYPE_CHOICES, default="on-site", db_index=True)
    experience_level = models.CharField(max_length=20, choices=EXPERIENCE_LEVEL_CHOICES, default="mid")
    category = models.CharField(max_length=50, choices=CATEGORY_CHOICES, default="Other", db_index=True)
    location_city = models.CharField(max_length=100, blank=True, default="")
    location_country = models.CharField(max_length=100, blank=True, default="United Kingdom")

    referral_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("1000.00"))
    referral_fee_currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="GBP")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    application_deadline = models.DateTimeField(blank=True, null=True)
    max_applications = models.PositiveIntegerField(default=100)

    views = models.PositiveIntegerField(default=0)
    applications = models.PositiveIntegerField(default=0)
    referrals = models.PositiveIntegerField(default=0)
    referral_views = models.PositiveIntegerField(default=0)
    referral_applications = models.PositiveIntegerField(default=0)

    posted_at = models.DateTimeField(blank=True, null=True)
    closed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "recruitment_jobs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["company", "status"], name="jobs_company_status_idx"),
            models.Index(fields=["status", "application_deadline"], name="jobs_status_deadline_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(applications__gte=F("referral_applications")),
                name="jobs_applications_cover_referrals",
            ),
            models.CheckConstraint(
                condition=Q(referral_fee__gte=0),
                name="jobs_referral_fee_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.company_id})"

    @property
    def is_posted(self) -> bool:
        return self.posted_at is not None or self.status != self.STATUS_DRAFT

    def deadline_passed(self, now=None) -> bool:
        if not self.application_deadline:
            return False
        return self.application_deadline < (now or timezone.now())

    def is_accepting_applications(self, now=None) -> bool:
        if self.status != self.STATUS_ACTIVE:
            return False
        if self.deadline_passed(now):
            return False
        if self.max_applications and self.applications >= self.max_applications:
            return False
        return True

    def referral_link(self, referral_code: str) -> str:
        base = getattr(django_settings, "FRONTEND_URL", "").rstrip("/")
        return f"{base}/jobs/{self.pk}?ref={referral_code}"


class Application(models.Model):
    STATUS_PENDING = "pending"
    STATUS_REVIEWING = "reviewing"
    STATUS_SHORTLISTED = "shortlisted"
    STATUS_INTERVIEWING = "interviewing"
    STATUS_OFFERED = "offered"
    STATUS_HIRED = "hired"
    STATUS_REJECTED = "rejected"
    STATUS_WITHDRAWN = "withdrawn"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_REVIEWING, "Reviewing"),
        (STATUS_SHORTLISTED, "Shortlisted"),
        (STATUS_INTERVIEWING, "Interviewing"),
        (STATUS_OFFERED, "Offered"),
        (STATUS_HIRED, "Hired"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_WITHDRAWN, "Withdrawn"),
    ]

    PIPELINE = [
        STATUS_PENDING,
        STATUS_REVIEWING,
        STATUS_SHORTLISTED,
        STATUS_INTERVIEWING,
        STATUS_OFFERED,
        STATUS_HIRED,
    ]
    TERMINAL_STATUSES = {STATUS_HIRED, STATUS_REJECTED, STATUS_WITHDRAWN}
    WITHDRAWABLE_STATUSES = {STATUS_PENDING, STATUS_REVIEWING, STATUS_SHORTLISTED}

    SOURCE_DIRECT = "direct"
    SOURCE_REFERRAL = "referral"

    SOURCE_CHOICES = [
        (SOURCE_DIRECT, "Direct"),
        (SOURCE_REFERRAL, "Referral"),
    ]

    PAYMENT_PENDING = "pending"
    PAYMENT_PROCESSING = "processing"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PROCESSING, "Processing"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
    ]

    RECOMMENDATION_CHOICES = [
        ("hire", "Hire"),
        ("no-hire", "No hire"),
        ("maybe", "Maybe"),
        ("interview", "Interview"),
    ]

    job = models.ForeignKey(Job, on_delete=models.PROTECT, related_name="job_applications")
    applicant = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="applications",
    )
    company = models.ForeignKey("accounts.Company", on_delete=models.PROTECT, related_name="applications")

    referred_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="referred_applications",
    )
    referral_code = models.CharField(max_length=32, blank=True, null=True, db_index=True)
    is_referral = models.BooleanField(default=False, db_index=True)
    application_source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default=SOURCE_DIRECT)

    cover_letter = models.TextField(blank=True, default="")
    custom_responses = models.JSONField(default=list, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    applied_at = models.DateTimeField(default=timezone.now)
    hire_recorded_at = models.DateTimeField(blank=True, null=True)

    # Company assessment; notes stay internal to the company
    feedback_rating = models.PositiveSmallIntegerField(blank=True, null=True)
    feedback_notes = models.TextField(blank=True, default="")
    feedback_strengths = models.JSONField(default=list, blank=True)
    feedback_concerns = models.JSONField(default=list, blank=True)
    feedback_recommendation = models.CharField(max_length=20, choices=RECOMMENDATION_CHOICES, blank=True, default="")
    feedback_reviewed_at = models.DateTimeField(blank=True, null=True)

    payment_is_eligible = models.BooleanField(default=False)
    payment_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    payment_currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="GBP")
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        blank=True,
        null=True,
        db_index=True,
    )
    payment_reference = models.CharField(max_length=64, unique=True, blank=True, null=True)
    payment_paid_at = models.DateTimeField(blank=True, null=True)
    payment_notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "recruitment_applications"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["job", "applicant"], name="applications_unique_job_applicant"),
            models.CheckConstraint(
                condition=~Q(referred_by=F("applicant")),
                name="applications_no_self_referral",
            ),
            models.CheckConstraint(
                condition=Q(feedback_rating__isnull=True) | Q(feedback_rating__gte=1, feedback_rating__lte=5),
                name="applications_rating_range",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "status"], name="applications_company_idx"),
            models.Index(fields=["referred_by", "status"], name="applications_referrer_idx"),
            models.Index(fields=["payment_status", "payment_is_eligible"], name="applications_payment_idx"),
        ]

    def __str__(self):
        return f"{self.applicant_id} -> {self.job_id} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def can_be_withdrawn(self) -> bool:
        return self.status in self.WITHDRAWABLE_STATUSES

    def company_feedback(self, include_notes=False) -> dict:
        feedback = {
            "rating": self.feedback_rating,
            "strengths": self.feedback_strengths,
            "concerns": self.feedback_concerns,
            "recommendation": self.feedback_recommendation or None,
            "reviewed_at": self.feedback_reviewed_at,
        }
        if include_notes:
            feedback["notes"] = self.feedback_notes
        return feedback

    @property
    def referral_payment(self) -> dict:
        return {
            "is_eligible": self.payment_is_eligible,
            "amount": self.payment_amount,
            "currency": self.payment_currency,
            "status": self.payment_status,
            "payment_reference": self.payment_reference,
            "paid_at": self.payment_paid_at,
        }


class ApplicationStatusHistory(models.Model):
    """Append-only log of application status changes."""

    application = models.ForeignKey(Application, on_delete=models.CASCADE, related_name="status_history")
    status = models.CharField(max_length=20, choices=Application.STATUS_CHOICES)
    note = models.TextField(blank=True, default="")
    actor_kind = models.CharField(max_length=10, choices=ACTOR_KIND_CHOICES, default=ACTOR_SYSTEM)
    actor_user = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    actor_company = models.ForeignKey(
        "accounts.Company",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "recruitment_application_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["application", "created_at"], name="status_history_app_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(actor_kind=ACTOR_USER, actor_company__isnull=True)
                    | Q(actor_kind=ACTOR_COMPANY, actor_user__isnull=True)
                    | Q(actor_kind=ACTOR_SYSTEM, actor_user__isnull=True, actor_company__isnull=True)
                ),
                name="status_history_actor_matches_kind",
            ),
        ]

    def __str__(self):
        return f"{self.application_id}: {self.status}"

    @property
    def actor(self) -> Actor:
        if self.actor_kind == ACTOR_USER:
            return Actor(kind=ACTOR_USER, id=self.actor_user_id)
        if self.actor_kind == ACTOR_COMPANY:
            return Actor(kind=ACTOR_COMPANY, id=self.actor_company_id)
        return Actor.system()

    @classmethod
    def actor_fields(cls, actor: Actor) -> dict:
        if actor is None or actor.is_system:
            return {"actor_kind": ACTOR_SYSTEM}
        if actor.is_company:
            return {"actor_kind": ACTOR_COMPANY, "actor_company_id": actor.id}
        return {"actor_kind": ACTOR_USER, "actor_user_id": actor.id}


class ApplicationInterview(models.Model):
    TYPE_CHOICES = [
        ("phone", "Phone"),
        ("video", "Video"),
        ("in-person", "In person"),
        ("technical", "Technical"),
        ("final", "Final"),
    ]

    STATUS_SCHEDULED = "scheduled"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"
    STATUS_RESCHEDULED = "rescheduled"

    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_RESCHEDULED, "Rescheduled"),
    ]

    application = models.ForeignKey(Application, on_delete=models.CASCADE, related_name="interviews")
    interview_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    scheduled_at = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField(default=60)
    location = models.CharField(max_length=255, blank=True, default="")
    meeting_link = models.CharField(max_length=255, blank=True, default="")
    interviewer_name = models.CharField(max_length=255, blank=True, default="")
    instructions = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "recruitment_application_interviews"
        ordering = ["scheduled_at"]
        indexes = [
            models.Index(fields=["application", "status"], name="interviews_app_status_idx"),
        ]
