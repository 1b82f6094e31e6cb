"""
Referral payment ledger.

A hired referral records exactly one eligible payment on the application.
Payout bookkeeping afterwards only moves the amount between the referrer's
pending and paid earnings; `total_earnings` is fixed at hire time.
"""
import logging
import uuid

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from notifications.models import Notification
from notifications.services import notify_on_commit

from . import stats
from .exceptions import InvalidTransition, NotFound, PaymentIneligible
from .models import Application, Job

logger = logging.getLogger(__name__)

PAYOUT_TRANSITIONS = {
    Application.PAYMENT_PENDING: {
        Application.PAYMENT_PROCESSING,
        Application.PAYMENT_PAID,
        Application.PAYMENT_FAILED,
    },
    Application.PAYMENT_PROCESSING: {Application.PAYMENT_PAID, Application.PAYMENT_FAILED},
    Application.PAYMENT_FAILED: {Application.PAYMENT_PROCESSING},
    Application.PAYMENT_PAID: set(),
}


def generate_payment_reference() -> str:
    return f"REF-PAY-{uuid.uuid4().hex[:16].upper()}"


def _get_job_for_payment(application):
    return Job.objects.filter(pk=application.job_id).first()


def _lock_application(application):
    locked = Application.objects.select_for_update().filter(pk=application.pk).first()
    if locked is None:
        raise NotFound("Application not found.")
    return locked


def _sync(application, locked, fields):
    for field in fields:
        setattr(application, field, getattr(locked, field))


def _eligible_job(application):
    if not application.is_referral or not application.referred_by_id:
        raise PaymentIneligible("Application was not referred.")
    if application.status != Application.STATUS_HIRED:
        raise PaymentIneligible("Application has not been hired.")
    job = _get_job_for_payment(application)
    if job is None:
        raise PaymentIneligible(f"Job {application.job_id} no longer exists.")
    return job


def record_eligible_payment(application) -> bool:
    """
    Record the referral fee owed for a hired referral.

    Returns True only the first time; later calls are no-ops. When the
    payment cannot be computed the application is left ineligible, the
    reason is kept in `payment_notes` and the error is logged.
    """
    fields = [
        "payment_is_eligible",
        "payment_amount",
        "payment_currency",
        "payment_status",
        "payment_reference",
        "payment_notes",
    ]
    with transaction.atomic():
        locked = _lock_application(application)
        if locked.payment_is_eligible:
            return False

        try:
            job = _eligible_job(locked)
        except PaymentIneligible as exc:
            logger.error(
                "Referral payment ineligible",
                extra={"application_id": locked.pk, "job_id": locked.job_id, "reason": str(exc)},
            )
            locked.payment_is_eligible = False
            locked.payment_notes = str(exc)
            locked.save(update_fields=["payment_is_eligible", "payment_notes", "updated_at"])
            _sync(application, locked, fields)
            return False

        locked.payment_is_eligible = True
        locked.payment_amount = job.referral_fee
        locked.payment_currency = job.referral_fee_currency
        locked.payment_status = Application.PAYMENT_PENDING
        locked.payment_reference = generate_payment_reference()
        locked.payment_notes = f"Referral payment for successful hire - {job.title}"
        locked.save(update_fields=fields + ["updated_at"])

        stats.accrue_referral_earnings(locked.referred_by_id, job.referral_fee)

    logger.info(
        "Referral payment recorded",
        extra={
            "application_id": locked.pk,
            "referrer_id": locked.referred_by_id,
            "amount": str(locked.payment_amount),
            "payment_reference": locked.payment_reference,
        },
    )
    _sync(application, locked, fields)
    return True


def _ensure_reference_unused(reference, application_id):
    if Application.objects.filter(payment_reference=reference).exclude(pk=application_id).exists():
        raise ValidationError({"reference": [f"Payment reference {reference} is already in use."]})


def _change_payment_status(application, status, *, reference=None, note=""):
    with transaction.atomic():
        locked = _lock_application(application)
        if not locked.payment_is_eligible or locked.payment_status is None:
            raise InvalidTransition("This application has no eligible referral payment.")

        current = locked.payment_status
        if current == status:
            return locked, False
        if status not in PAYOUT_TRANSITIONS.get(current, set()):
            raise InvalidTransition(f"Cannot move referral payment from {current} to {status}.")

        locked.payment_status = status
        update_fields = ["payment_status", "updated_at"]
        if reference and reference != locked.payment_reference:
            _ensure_reference_unused(reference, locked.pk)
            locked.payment_reference = reference
            update_fields.append("payment_reference")
        if note:
            locked.payment_notes = note
            update_fields.append("payment_notes")
        if status == Application.PAYMENT_PAID:
            locked.payment_paid_at = timezone.now()
            update_fields.append("payment_paid_at")
        try:
            with transaction.atomic():
                locked.save(update_fields=update_fields)
        except IntegrityError:
            if "payment_reference" not in update_fields:
                raise
            _ensure_reference_unused(reference, locked.pk)
            raise

        if status == Application.PAYMENT_PAID:
            stats.settle_referral_earnings(locked.referred_by_id, locked.payment_amount)
            stats.increment_company_counters(locked.company_id, total_referrals_paid=1)
            notify_on_commit(
                locked.referred_by_id,
                Notification.KIND_REFERRAL_PAYMENT_PAID,
                {
                    "application_id": locked.pk,
                    "job_id": locked.job_id,
                    "amount": str(locked.payment_amount),
                    "currency": locked.payment_currency,
                    "payment_reference": locked.payment_reference,
                },
            )

    logger.info(
        "Referral payment status changed",
        extra={"application_id": locked.pk, "from_status": current, "to_status": status},
    )
    return locked, True


def mark_payment_processing(application):
    locked, _ = _change_payment_status(application, Application.PAYMENT_PROCESSING)
    _sync(application, locked, ["payment_status"])
    return application


def mark_payment_paid(application, reference=None):
    locked, _ = _change_payment_status(application, Application.PAYMENT_PAID, reference=reference)
    _sync(application, locked, ["payment_status", "payment_reference", "payment_paid_at"])
    return application


def mark_payment_failed(application, reason=""):
    locked, _ = _change_payment_status(application, Application.PAYMENT_FAILED, note=reason)
    _sync(application, locked, ["payment_status", "payment_notes"])
    return application
