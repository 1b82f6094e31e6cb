import logging

from django.conf import settings as django_settings
from django.db.models import Q
from django_ratelimit.core import is_ratelimited
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import IsCompany, IsJobSeeker, IsStaffUser
from accounts.utils import resolve_actor

from . import payments, services, stats
from .exceptions import NotFound, Unauthorized
from .models import Application, Job
from .serializers import (
    ApplicationInterviewSerializer,
    ApplicationSerializer,
    ApplicationStatusSerializer,
    ApplicationSubmitSerializer,
    ApplicationWithdrawSerializer,
    JobCreateSerializer,
    JobSerializer,
    JobStatusSerializer,
    ReferralPaymentStatusSerializer,
)

logger = logging.getLogger(__name__)


def _company_for(user):
    if user and user.is_authenticated and user.is_company:
        return getattr(user, "company", None)
    return None


class JobViewSet(viewsets.ModelViewSet):
    serializer_class = JobSerializer
    permission_map = {
        "list": [permissions.AllowAny],
        "retrieve": [permissions.AllowAny],
        "filters": [permissions.AllowAny],
        "share": [permissions.IsAuthenticated, IsJobSeeker],
        "*": [permissions.IsAuthenticated, IsCompany],
    }

    def get_permissions(self):
        classes = self.permission_map.get(self.action, self.permission_map["*"])
        return [permission() for permission in classes]

    def get_serializer_class(self):
        if self.action == "create":
            return JobCreateSerializer
        return JobSerializer

    def get_queryset(self):
        qs = Job.objects.select_related("company")
        company = _company_for(self.request.user)

        if self.action in ("list", "retrieve", "share"):
            if company and self.request.query_params.get("mine"):
                return qs.filter(company=company)
            visible = Q(status=Job.STATUS_ACTIVE)
            if company:
                visible |= Q(company=company)
            qs = qs.filter(visible)
            if self.action == "list":
                for field in ("category", "job_type", "work_type", "experience_level"):
                    value = self.request.query_params.get(field)
                    if value:
                        qs = qs.filter(**{field: value})
            return qs

        if company is None:
            return qs.none()
        return qs.filter(company=company)

    def retrieve(self, request, *args, **kwargs):
        job = self.get_object()
        company = _company_for(request.user)
        if company is None or job.company_id != company.pk:
            services.record_job_view(job=job, referral_code=request.query_params.get("ref"))
            job.refresh_from_db()
        return Response(self.get_serializer(job).data)

    def perform_create(self, serializer):
        company = self.request.user.company
        job = services.create_job(company=company, **serializer.validated_data)
        serializer.instance = job

    def perform_update(self, serializer):
        job = services.update_job(
            job=serializer.instance,
            actor_company=self.request.user.company,
            **serializer.validated_data,
        )
        serializer.instance = job

    def perform_destroy(self, instance):
        services.delete_job(job=instance, actor_company=self.request.user.company)

    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request, pk=None):
        job = self.get_object()
        serializer = JobStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        job = services.change_job_status(
            job=job,
            new_status=serializer.validated_data["status"],
            actor=resolve_actor(request.user),
        )
        return Response(JobSerializer(job).data)

    @action(detail=False, methods=["get"], url_path="filters")
    def filters(self, request):
        return Response(stats.job_filter_options())

    @action(detail=True, methods=["get"], url_path="stats", url_name="stats")
    def job_stats(self, request, pk=None):
        job = self.get_object()
        return Response({"job_id": job.pk, "job_title": job.title, "stats": stats.job_performance(job)})

    @action(detail=True, methods=["post"], url_path="share")
    def share(self, request, pk=None):
        job = self.get_object()
        link = services.share_job(job=job, user=request.user)
        return Response(
            {"job_id": job.pk, "referral_code": request.user.referral_code, "referral_link": link},
            status=status.HTTP_200_OK,
        )


class ApplicationViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = ApplicationSerializer
    permission_map = {
        "create": [permissions.IsAuthenticated, IsJobSeeker],
        "withdraw": [permissions.IsAuthenticated, IsJobSeeker],
        "referrals": [permissions.IsAuthenticated, IsJobSeeker],
        "change_status": [permissions.IsAuthenticated, IsCompany],
        "interviews": [permissions.IsAuthenticated, IsCompany],
        "payment": [permissions.IsAuthenticated, IsStaffUser],
    }

    def get_permissions(self):
        classes = self.permission_map.get(self.action, self.permission_classes)
        return [permission() for permission in classes]

    def get_queryset(self):
        user = self.request.user
        qs = Application.objects.select_related("job", "applicant").prefetch_related("status_history", "interviews")
        if self.action == "payment":
            return qs
        company = _company_for(user)
        if company is not None:
            qs = qs.filter(company=company)
            job_id = self.request.query_params.get("job")
            if job_id:
                qs = qs.filter(job_id=job_id)
        else:
            qs = qs.filter(applicant=user)
        status_filter = self.request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs

    def create(self, request, *args, **kwargs):
        rate = getattr(django_settings, "APPLICATION_SUBMIT_RATE_LIMIT", None)
        if rate:
            limited = is_ratelimited(request, group="applications_submit", key="user_or_ip", rate=rate, increment=True)
            if limited:
                return Response({"detail": "Too many requests."}, status=status.HTTP_429_TOO_MANY_REQUESTS)

        serializer = ApplicationSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = serializer.validated_data

        job = Job.objects.filter(pk=payload["job_id"]).first()
        if job is None:
            raise NotFound("Job not found.")

        application = services.submit_application(
            job=job,
            applicant=request.user,
            referral_code=payload.get("referral_code"),
            cover_letter=payload.get("cover_letter", ""),
            custom_responses=payload.get("custom_responses"),
        )
        output = self.get_serializer(self.get_queryset().get(pk=application.pk))
        return Response(output.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request, pk=None):
        application = self.get_object()
        serializer = ApplicationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.transition_application(
            application=application,
            new_status=serializer.validated_data["status"],
            actor=resolve_actor(request.user),
            note=serializer.validated_data.get("note", ""),
            feedback=serializer.feedback_payload(),
        )
        return Response(self.get_serializer(self.get_queryset().get(pk=application.pk)).data)

    @action(detail=True, methods=["post"], url_path="withdraw")
    def withdraw(self, request, pk=None):
        application = self.get_object()
        serializer = ApplicationWithdrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.withdraw_application(
            application=application,
            actor=resolve_actor(request.user),
            reason=serializer.validated_data.get("reason", ""),
        )
        return Response(self.get_serializer(self.get_queryset().get(pk=application.pk)).data)

    @action(detail=True, methods=["post"], url_path="interviews")
    def interviews(self, request, pk=None):
        application = self.get_object()
        serializer = ApplicationInterviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        interview = services.schedule_interview(
            application=application,
            actor=resolve_actor(request.user),
            **serializer.validated_data,
        )
        return Response(ApplicationInterviewSerializer(interview).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path="payment")
    def payment(self, request, pk=None):
        application = self.get_object()
        serializer = ReferralPaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        target = serializer.validated_data["status"]

        if target == Application.PAYMENT_PROCESSING:
            payments.mark_payment_processing(application)
        elif target == Application.PAYMENT_PAID:
            payments.mark_payment_paid(application, reference=serializer.validated_data.get("reference") or None)
        else:
            payments.mark_payment_failed(application, reason=serializer.validated_data.get("reason", ""))

        logger.info(
            "Referral payment updated by staff",
            extra={"application_id": application.pk, "status": target, "staff_user_id": request.user.pk},
        )
        application.refresh_from_db()
        return Response(self.get_serializer(application).data)

    @action(detail=False, methods=["get"], url_path="referrals")
    def referrals(self, request):
        user = request.user
        if user.is_company:
            raise Unauthorized("Company accounts do not have referrals.")
        user.refresh_from_db()
        qs = (
            Application.objects.select_related("job", "applicant")
            .prefetch_related("status_history", "interviews")
            .filter(referred_by=user)
        )
        return Response(
            {
                "referral_code": user.referral_code,
                "summary": user.referral_stats(),
                "applications": self.get_serializer(qs, many=True).data,
            }
        )
