from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

APPLICATION_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("reviewing", "Reviewing"),
    ("shortlisted", "Shortlisted"),
    ("interviewing", "Interviewing"),
    ("offered", "Offered"),
    ("hired", "Hired"),
    ("rejected", "Rejected"),
    ("withdrawn", "Withdrawn"),
]

CURRENCY_CHOICES = [("GBP", "GBP"), ("USD", "USD"), ("EUR", "EUR")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Job",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=100)),
                ("description", models.TextField()),
                ("job_type", models.CharField(choices=[("full-time", "Full-time"), ("part-time", "Part-time"), ("contract", "Contract"), ("temporary", "Temporary"), ("internship", "Internship")], db_index=True, default="full-time", max_length=20)),
                ("work_type", models.CharField(choices=[("remote", "Remote"), ("hybrid", "Hybrid"), ("on-site", "On-site")], db_index=True, default="on-site", max_length=20)),
                ("experience_level", models.CharField(choices=[("entry", "Entry"), ("mid", "Mid"), ("senior", "Senior"), ("lead", "Lead"), ("executive", "Executive")], default="mid", max_length=20)),
                ("category", models.CharField(choices=[("Engineering", "Engineering"), ("Design", "Design"), ("Product", "Product"), ("Marketing", "Marketing"), ("Sales", "Sales"), ("Customer Success", "Customer Success"), ("Operations", "Operations"), ("Finance", "Finance"), ("HR", "HR"), ("Legal", "Legal"), ("Data Science", "Data Science"), ("Security", "Security"), ("Other", "Other")], db_index=True, default="Other", max_length=50)),
                ("location_city", models.CharField(blank=True, default="", max_length=100)),
                ("location_country", models.CharField(blank=True, default="United Kingdom", max_length=100)),
                ("referral_fee", models.DecimalField(decimal_places=2, default=Decimal("1000.00"), max_digits=12)),
                ("referral_fee_currency", models.CharField(choices=CURRENCY_CHOICES, default="GBP", max_length=3)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("active", "Active"), ("paused", "Paused"), ("closed", "Closed"), ("filled", "Filled")], db_index=True, default="draft", max_length=20)),
                ("application_deadline", models.DateTimeField(blank=True, null=True)),
                ("max_applications", models.PositiveIntegerField(default=100)),
                ("views", models.PositiveIntegerField(default=0)),
                ("applications", models.PositiveIntegerField(default=0)),
                ("referrals", models.PositiveIntegerField(default=0)),
                ("referral_views", models.PositiveIntegerField(default=0)),
                ("referral_applications", models.PositiveIntegerField(default=0)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="jobs", to="accounts.company")),
            ],
            options={
                "db_table": "recruitment_jobs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["company", "status"], name="jobs_company_status_idx"),
                    models.Index(fields=["status", "application_deadline"], name="jobs_status_deadline_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("applications__gte", models.F("referral_applications"))), name="jobs_applications_cover_referrals"),
                    models.CheckConstraint(condition=models.Q(("referral_fee__gte", 0)), name="jobs_referral_fee_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Application",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("referral_code", models.CharField(blank=True, db_index=True, max_length=32, null=True)),
                ("is_referral", models.BooleanField(db_index=True, default=False)),
                ("application_source", models.CharField(choices=[("direct", "Direct"), ("referral", "Referral")], default="direct", max_length=20)),
                ("cover_letter", models.TextField(blank=True, default="")),
                ("custom_responses", models.JSONField(blank=True, default=list)),
                ("status", models.CharField(choices=APPLICATION_STATUS_CHOICES, db_index=True, default="pending", max_length=20)),
                ("applied_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("hire_recorded_at", models.DateTimeField(blank=True, null=True)),
                ("payment_is_eligible", models.BooleanField(default=False)),
                ("payment_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("payment_currency", models.CharField(choices=CURRENCY_CHOICES, default="GBP", max_length=3)),
                ("payment_status", models.CharField(blank=True, choices=[("pending", "Pending"), ("processing", "Processing"), ("paid", "Paid"), ("failed", "Failed")], db_index=True, max_length=20, null=True)),
                ("payment_reference", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("payment_paid_at", models.DateTimeField(blank=True, null=True)),
                ("payment_notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("applicant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="applications", to=settings.AUTH_USER_MODEL)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="applications", to="accounts.company")),
                ("job", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="job_applications", to="recruitment.job")),
                ("referred_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="referred_applications", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "recruitment_applications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["company", "status"], name="applications_company_idx"),
                    models.Index(fields=["referred_by", "status"], name="applications_referrer_idx"),
                    models.Index(fields=["payment_status", "payment_is_eligible"], name="applications_payment_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("job", "applicant"), name="applications_unique_job_applicant"),
                    models.CheckConstraint(condition=models.Q(("referred_by", models.F("applicant")), _negated=True), name="applications_no_self_referral"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ApplicationStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=APPLICATION_STATUS_CHOICES, max_length=20)),
                ("note", models.TextField(blank=True, default="")),
                ("actor_kind", models.CharField(choices=[("user", "User"), ("company", "Company"), ("system", "System")], default="system", max_length=10)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("actor_company", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="accounts.company")),
                ("actor_user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("application", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="status_history", to="recruitment.application")),
            ],
            options={
                "db_table": "recruitment_application_status_history",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["application", "created_at"], name="status_history_app_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("actor_company__isnull", True), ("actor_kind", "user")),
                            models.Q(("actor_kind", "company"), ("actor_user__isnull", True)),
                            models.Q(("actor_company__isnull", True), ("actor_kind", "system"), ("actor_user__isnull", True)),
                            _connector="OR",
                        ),
                        name="status_history_actor_matches_kind",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ApplicationInterview",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("interview_type", models.CharField(choices=[("phone", "Phone"), ("video", "Video"), ("in-person", "In person"), ("technical", "Technical"), ("final", "Final")], max_length=20)),
                ("scheduled_at", models.DateTimeField()),
                ("duration_minutes", models.PositiveIntegerField(default=60)),
                ("location", models.CharField(blank=True, default="", max_length=255)),
                ("meeting_link", models.CharField(blank=True, default="", max_length=255)),
                ("interviewer_name", models.CharField(blank=True, default="", max_length=255)),
                ("instructions", models.TextField(blank=True, default="")),
                ("status", models.CharField(choices=[("scheduled", "Scheduled"), ("completed", "Completed"), ("cancelled", "Cancelled"), ("rescheduled", "Rescheduled")], default="scheduled", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("application", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="interviews", to="recruitment.application")),
            ],
            options={
                "db_table": "recruitment_application_interviews",
                "ordering": ["scheduled_at"],
                "indexes": [
                    models.Index(fields=["application", "status"], name="interviews_app_status_idx"),
                ],
            },
        ),
    ]
