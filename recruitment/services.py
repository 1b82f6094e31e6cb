import logging
from decimal import Decimal

from django.conf import settings as django_settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts.utils import Actor
from notifications.models import Notification
from notifications.services import notify_on_commit

from . import payments, stats
from .exceptions import (
    DuplicateApplication,
    InvalidTransition,
    JobNotAcceptingApplications,
    NotFound,
    Unauthorized,
)
from .models import Application, ApplicationInterview, ApplicationStatusHistory, Job
from .referrals import find_user_by_referral_code, resolve_referral

logger = logging.getLogger(__name__)

APPLICATION_STATUSES = {value for value, _ in Application.STATUS_CHOICES}
JOB_STATUSES = {value for value, _ in Job.STATUS_CHOICES}

JOB_UPDATABLE_FIELDS = {
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
    "application_deadline",
    "max_applications",
}
JOB_FEE_FIELDS = {"referral_fee", "referral_fee_currency"}

FEEDBACK_FIELDS = {
    "rating": "feedback_rating",
    "notes": "feedback_notes",
    "strengths": "feedback_strengths",
    "concerns": "feedback_concerns",
    "recommendation": "feedback_recommendation",
}


# --------------------------------------------------------------------------
# Applications
# --------------------------------------------------------------------------


def _lock_job(job_id):
    job = Job.objects.select_for_update().filter(pk=job_id).first()
    if job is None:
        raise NotFound("Job not found.")
    return job


def _lock_application(application_id):
    application = Application.objects.select_for_update().filter(pk=application_id).first()
    if application is None:
        raise NotFound("Application not found.")
    return application


def _application_exists(job_id, applicant_id) -> bool:
    return Application.objects.filter(job_id=job_id, applicant_id=applicant_id).exists()


def _append_history(application, status, actor, note=""):
    return ApplicationStatusHistory.objects.create(
        application=application,
        status=status,
        note=note or "",
        **ApplicationStatusHistory.actor_fields(actor),
    )


def submit_application(
    *,
    job,
    applicant,
    referral_code=None,
    cover_letter="",
    custom_responses=None,
    now=None,
):
    """
    Create an application for `applicant` on `job`.

    The application, its first history entry and every counter it touches are
    written in one transaction. The referral is resolved once here and never
    changes afterwards.
    """
    if applicant is None or getattr(applicant, "is_company", False):
        raise Unauthorized("Only job seekers can apply for jobs.")

    now = now or timezone.now()
    attribution = resolve_referral(applicant, referral_code)
    entered_code = attribution.effective_code

    try:
        with transaction.atomic():
            locked_job = _lock_job(job.pk)
            if not locked_job.is_accepting_applications(now):
                raise JobNotAcceptingApplications()
            if _application_exists(locked_job.pk, applicant.pk):
                raise DuplicateApplication()

            application = Application.objects.create(
                job=locked_job,
                applicant=applicant,
                company_id=locked_job.company_id,
                referred_by=attribution.referred_by,
                referral_code=entered_code,
                is_referral=attribution.is_referral,
                application_source=(
                    Application.SOURCE_REFERRAL if attribution.is_referral else Application.SOURCE_DIRECT
                ),
                cover_letter=cover_letter or "",
                custom_responses=custom_responses or [],
                status=Application.STATUS_PENDING,
                applied_at=now,
            )
            _append_history(application, Application.STATUS_PENDING, Actor.for_user(applicant), "Application submitted")

            stats.increment_job_counters(
                locked_job.pk,
                applications=1,
                referral_applications=1 if attribution.is_referral else 0,
            )
            stats.increment_company_counters(locked_job.company_id, total_applications=1)
            if attribution.is_referral:
                stats.increment_referral_stats(attribution.referred_by.pk, total_referrals=1)

            payload = {
                "application_id": application.pk,
                "job_id": locked_job.pk,
                "job_title": locked_job.title,
            }
            notify_on_commit(locked_job.company.user_id, Notification.KIND_APPLICATION_SUBMITTED, payload)
            if attribution.is_referral:
                notify_on_commit(attribution.referred_by.pk, Notification.KIND_REFERRAL_APPLICATION, payload)
    except IntegrityError:
        if Application.objects.filter(job_id=job.pk, applicant_id=applicant.pk).exists():
            raise DuplicateApplication()
        raise

    logger.info(
        "Application submitted",
        extra={
            "application_id": application.pk,
            "job_id": job.pk,
            "applicant_id": applicant.pk,
            "is_referral": attribution.is_referral,
        },
    )
    return application


def _check_transition(application, new_status, actor):
    is_owner = actor is not None and (
        actor.is_system or (actor.is_company and actor.id == application.company_id)
    )
    is_applicant = actor is not None and actor.is_user and actor.id == application.applicant_id
    if not (is_owner or is_applicant):
        raise Unauthorized("You are not allowed to change this application.")

    if application.is_terminal:
        raise InvalidTransition(f"Application is already {application.status}.")

    if new_status == Application.STATUS_WITHDRAWN:
        if not is_applicant:
            raise Unauthorized("Only the applicant can withdraw an application.")
        if not application.can_be_withdrawn:
            raise InvalidTransition(f"Applications cannot be withdrawn once {application.status}.")
        return

    if not is_owner:
        raise Unauthorized("Applicants can only withdraw their application.")

    if new_status not in APPLICATION_STATUSES:
        raise InvalidTransition(f"Unknown application status '{new_status}'.")
    if new_status == Application.STATUS_REJECTED:
        return

    pipeline = Application.PIPELINE
    if pipeline.index(new_status) <= pipeline.index(application.status):
        raise InvalidTransition(f"Cannot move application from {application.status} to {new_status}.")


def _run_hire_side_effects(application):
    try:
        with transaction.atomic():
            apply_hire_side_effects(application)
    except Exception:
        logger.exception(
            "Hire side effects failed",
            extra={"application_id": application.pk, "job_id": application.job_id},
        )


def _apply_feedback(application, feedback) -> list:
    changed = []
    for key, field in FEEDBACK_FIELDS.items():
        if feedback.get(key) is not None:
            setattr(application, field, feedback[key])
            changed.append(field)
    if changed:
        application.feedback_reviewed_at = timezone.now()
        changed.append("feedback_reviewed_at")
    return changed


def transition_application(*, application, new_status, actor, note="", feedback=None):
    """
    Move an application to `new_status` on behalf of `actor`.

    `feedback` optionally carries the company's assessment (rating, notes,
    strengths, concerns, recommendation); only the keys given are updated.

    The row is locked and re-read first, so of two concurrent writers the
    second one sees the first one's result.
    """
    with transaction.atomic():
        locked = _lock_application(application.pk)
        _check_transition(locked, new_status, actor)

        previous = locked.status
        locked.status = new_status
        update_fields = ["status", "updated_at"]
        if feedback and actor.is_company:
            update_fields += _apply_feedback(locked, feedback)
        locked.save(update_fields=update_fields)
        _append_history(locked, new_status, actor, note)

        if new_status == Application.STATUS_HIRED and locked.is_referral:
            _run_hire_side_effects(locked)

        job_title = Job.objects.filter(pk=locked.job_id).values_list("title", flat=True).first()
        notify_on_commit(
            locked.applicant_id,
            Notification.KIND_APPLICATION_STATUS_CHANGED,
            {
                "application_id": locked.pk,
                "job_id": locked.job_id,
                "job_title": job_title,
                "previous_status": previous,
                "status": new_status,
            },
        )

    logger.info(
        "Application status changed",
        extra={
            "application_id": locked.pk,
            "from_status": previous,
            "to_status": new_status,
            "actor_kind": actor.kind,
        },
    )
    application.status = locked.status
    application.updated_at = locked.updated_at
    return application


def withdraw_application(*, application, actor, reason=""):
    return transition_application(
        application=application,
        new_status=Application.STATUS_WITHDRAWN,
        actor=actor,
        note=reason or "Withdrawn by applicant",
    )


def apply_hire_side_effects(application) -> bool:
    """
    Bookkeeping for a hired referral: company hires, referrer successes and
    the referral payment. Runs at most once per application.
    """
    with transaction.atomic():
        locked = _lock_application(application.pk)
        if locked.status != Application.STATUS_HIRED or not locked.is_referral:
            return False
        if locked.hire_recorded_at is not None:
            return False

        locked.hire_recorded_at = timezone.now()
        locked.save(update_fields=["hire_recorded_at", "updated_at"])

        stats.increment_company_counters(locked.company_id, total_hires=1)
        if locked.referred_by_id:
            stats.increment_referral_stats(locked.referred_by_id, successful_referrals=1)

        payments.record_eligible_payment(locked)

        job_title = Job.objects.filter(pk=locked.job_id).values_list("title", flat=True).first()
        notify_on_commit(
            locked.referred_by_id,
            Notification.KIND_REFERRAL_HIRED,
            {
                "application_id": locked.pk,
                "job_id": locked.job_id,
                "job_title": job_title,
                "amount": str(locked.payment_amount) if locked.payment_is_eligible else None,
                "currency": locked.payment_currency,
            },
        )

    application.hire_recorded_at = locked.hire_recorded_at
    return True


def schedule_interview(
    *,
    application,
    actor,
    interview_type,
    scheduled_at,
    duration_minutes=60,
    location="",
    meeting_link="",
    interviewer_name="",
    instructions="",
):
    if actor is None or not actor.is_company or actor.id != application.company_id:
        raise Unauthorized("Only the hiring company can schedule interviews.")

    with transaction.atomic():
        locked = _lock_application(application.pk)
        if locked.is_terminal:
            raise InvalidTransition(f"Application is already {locked.status}.")

        interview = ApplicationInterview.objects.create(
            application=locked,
            interview_type=interview_type,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes or 60,
            location=location or "",
            meeting_link=meeting_link or "",
            interviewer_name=interviewer_name or "",
            instructions=instructions or "",
        )

        pipeline = Application.PIPELINE
        if pipeline.index(locked.status) < pipeline.index(Application.STATUS_INTERVIEWING):
            transition_application(
                application=locked,
                new_status=Application.STATUS_INTERVIEWING,
                actor=actor,
                note=f"Interview scheduled for {scheduled_at:%Y-%m-%d %H:%M}",
            )

    application.status = locked.status
    return interview


# --------------------------------------------------------------------------
# Jobs
# --------------------------------------------------------------------------


def _check_job_owner(job, actor_company):
    if actor_company is None or job.company_id != actor_company.pk:
        raise Unauthorized("You do not own this job.")


def create_job(*, company, **fields):
    status = fields.pop("status", None) or Job.STATUS_DRAFT
    if status not in (Job.STATUS_DRAFT, Job.STATUS_ACTIVE):
        raise InvalidTransition("New jobs must start as draft or active.")
    unknown = set(fields) - JOB_UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown job fields: {', '.join(sorted(unknown))}")
    fields.setdefault("referral_fee", Decimal(str(getattr(django_settings, "REFERRAL_DEFAULT_FEE", "1000.00"))))
    fields.setdefault("referral_fee_currency", getattr(django_settings, "REFERRAL_DEFAULT_CURRENCY", "GBP"))

    with transaction.atomic():
        job = Job.objects.create(
            company=company,
            status=status,
            posted_at=timezone.now() if status == Job.STATUS_ACTIVE else None,
            **fields,
        )
        stats.increment_company_counters(
            company.pk,
            total_jobs_posted=1,
            active_jobs=1 if status == Job.STATUS_ACTIVE else 0,
        )

    logger.info("Job created", extra={"job_id": job.pk, "company_id": company.pk, "status": status})
    return job


def update_job(*, job, actor_company, **fields):
    unknown = set(fields) - JOB_UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown job fields: {', '.join(sorted(unknown))}")

    with transaction.atomic():
        locked = _lock_job(job.pk)
        _check_job_owner(locked, actor_company)

        changed = [name for name, value in fields.items() if getattr(locked, name) != value]
        if locked.is_posted and JOB_FEE_FIELDS.intersection(changed):
            raise InvalidTransition("The referral fee cannot change once the job has been posted.")

        for name in changed:
            setattr(locked, name, fields[name])
        if changed:
            locked.save(update_fields=changed + ["updated_at"])

    return locked


def change_job_status(*, job, new_status, actor=None):
    """
    The only path that changes a job's status.

    Keeps the company's `active_jobs` in step with the live job rows. Setting
    the status a job already has changes nothing.
    """
    if new_status not in JOB_STATUSES:
        raise InvalidTransition(f"Unknown job status '{new_status}'.")

    with transaction.atomic():
        locked = _lock_job(job.pk)
        if actor is not None and not actor.is_system:
            if not (actor.is_company and actor.id == locked.company_id):
                raise Unauthorized("You do not own this job.")

        previous = locked.status
        if previous == new_status:
            return locked
        if new_status == Job.STATUS_DRAFT and locked.is_posted:
            raise InvalidTransition("A posted job cannot go back to draft.")

        now = timezone.now()
        locked.status = new_status
        update_fields = ["status", "updated_at"]
        if new_status == Job.STATUS_ACTIVE and locked.posted_at is None:
            locked.posted_at = now
            update_fields.append("posted_at")
        if new_status in Job.CLOSING_STATUSES:
            locked.closed_at = now
            update_fields.append("closed_at")
        locked.save(update_fields=update_fields)

        stats.increment_company_counters(
            locked.company_id,
            active_jobs=stats.active_job_delta(previous, new_status),
        )

    logger.info(
        "Job status changed",
        extra={
            "job_id": locked.pk,
            "from_status": previous,
            "to_status": new_status,
            "actor_kind": actor.kind if actor else None,
        },
    )
    return locked


def delete_job(*, job, actor_company):
    with transaction.atomic():
        locked = _lock_job(job.pk)
        _check_job_owner(locked, actor_company)
        if Application.objects.filter(job_id=locked.pk).exists():
            raise InvalidTransition("Jobs that have received applications cannot be deleted.")

        stats.increment_company_counters(
            locked.company_id,
            total_jobs_posted=-1,
            active_jobs=-1 if locked.status == Job.STATUS_ACTIVE else 0,
        )
        job_id = locked.pk
        locked.delete()

    logger.info("Job deleted", extra={"job_id": job_id, "company_id": actor_company.pk})


def close_expired_jobs(now=None) -> int:
    """Close every active job whose application deadline has passed."""
    now = now or timezone.now()
    expired = Job.objects.filter(
        status=Job.STATUS_ACTIVE,
        application_deadline__isnull=False,
        application_deadline__lt=now,
    ).values_list("pk", flat=True)

    closed = 0
    for job_id in list(expired):
        try:
            with transaction.atomic():
                current = Job.objects.select_for_update().filter(pk=job_id).first()
                if current is None or current.status != Job.STATUS_ACTIVE or not current.deadline_passed(now):
                    continue
                change_job_status(job=current, new_status=Job.STATUS_CLOSED, actor=Actor.system())
                closed += 1
        except Exception:
            logger.exception("Failed to close expired job", extra={"job_id": job_id})

    if closed:
        logger.info("Closed expired jobs", extra={"count": closed})
    return closed


def record_job_view(*, job, referral_code=None) -> bool:
    """Count a job view. Returns True when it was counted as a referral view."""
    via_referral = bool(referral_code) and find_user_by_referral_code(referral_code) is not None
    stats.increment_job_counters(job.pk, views=1, referral_views=1 if via_referral else 0)
    return via_referral


def share_job(*, job, user) -> str:
    if user is None or getattr(user, "is_company", False) or not user.referral_code:
        raise Unauthorized("Only job seekers with a referral code can share jobs.")
    if job.status != Job.STATUS_ACTIVE:
        raise JobNotAcceptingApplications("Only active jobs can be shared.")

    stats.increment_job_counters(job.pk, referrals=1)
    logger.info("Job shared", extra={"job_id": job.pk, "user_id": user.pk})
    return job.referral_link(user.referral_code)
