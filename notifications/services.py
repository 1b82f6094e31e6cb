"""
Fire-and-forget notification delivery.

Callers hand over a recipient, a kind and a JSON payload. Delivery failures
are logged and never propagate back into the business operation that
triggered them.
"""
import logging
from functools import partial

from django.db import transaction

from .models import Notification

logger = logging.getLogger(__name__)

TITLES = {
    Notification.KIND_APPLICATION_SUBMITTED: 'New application received',
    Notification.KIND_REFERRAL_APPLICATION: 'Someone applied with your referral code',
    Notification.KIND_APPLICATION_STATUS_CHANGED: 'Application status updated',
    Notification.KIND_REFERRAL_HIRED: 'Your referral was hired',
    Notification.KIND_REFERRAL_PAYMENT_PAID: 'Referral payment sent',
}


def _render_body(kind, payload):
    job_title = payload.get('job_title') or 'a job'
    if kind == Notification.KIND_APPLICATION_SUBMITTED:
        return f"A new application was submitted for {job_title}."
    if kind == Notification.KIND_REFERRAL_APPLICATION:
        return f"A candidate applied to {job_title} using your referral code."
    if kind == Notification.KIND_APPLICATION_STATUS_CHANGED:
        return f"Your application for {job_title} is now {payload.get('status', 'updated')}."
    if kind == Notification.KIND_REFERRAL_HIRED:
        amount = payload.get('amount')
        if amount:
            return f"Your referral for {job_title} was hired. {amount} {payload.get('currency', '')} is pending payout.".strip()
        return f"Your referral for {job_title} was hired."
    if kind == Notification.KIND_REFERRAL_PAYMENT_PAID:
        return f"Your referral payment of {payload.get('amount')} {payload.get('currency', '')} has been paid.".strip()
    return ''


def notify(user_id, kind, payload=None):
    """
    Emit an in-app notification. Returns the Notification, or None when
    delivery failed.
    """
    payload = dict(payload or {})
    if user_id is None:
        return None
    try:
        return Notification.objects.create(
            user_id=user_id,
            kind=kind,
            title=TITLES.get(kind, 'Notification'),
            body=_render_body(kind, payload),
            status=Notification.STATUS_UNREAD,
            data=payload,
        )
    except Exception:
        logger.exception(
            "Failed to deliver notification",
            extra={'user_id': user_id, 'kind': kind},
        )
        return None


def notify_on_commit(user_id, kind, payload=None):
    """Schedule `notify` for after the surrounding transaction commits."""
    transaction.on_commit(partial(notify, user_id, kind, payload))
