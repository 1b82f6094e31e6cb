"""
Denormalized counters on Job, Company and User.

Every counter write goes through these helpers so each invariant has one
code path. Updates are single `UPDATE ... SET col = col + n` statements,
which keeps concurrent increments from losing updates.
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import F

from accounts.models import Company, to_minor_units

from .models import Job

JOB_COUNTERS = {"views", "applications", "referrals", "referral_views", "referral_applications"}
COMPANY_COUNTERS = {"total_jobs_posted", "active_jobs", "total_applications", "total_hires", "total_referrals_paid"}
REFERRAL_COUNTERS = {
    "total_referrals",
    "successful_referrals",
    "total_earnings_minor",
    "pending_earnings_minor",
    "paid_earnings_minor",
}


def _increments(allowed: set, deltas: dict) -> dict:
    unknown = set(deltas) - allowed
    if unknown:
        raise ValueError(f"Unknown counters: {', '.join(sorted(unknown))}")
    return {name: F(name) + delta for name, delta in deltas.items() if delta}


def increment_job_counters(job_id, **deltas) -> int:
    updates = _increments(JOB_COUNTERS, deltas)
    if not updates:
        return 0
    return Job.objects.filter(pk=job_id).update(**updates)


def increment_company_counters(company_id, **deltas) -> int:
    updates = _increments(COMPANY_COUNTERS, deltas)
    if not updates:
        return 0
    return Company.objects.filter(pk=company_id).update(**updates)


def increment_referral_stats(user_id, **deltas) -> int:
    updates = _increments(REFERRAL_COUNTERS, deltas)
    if not updates:
        return 0
    return get_user_model().objects.filter(pk=user_id).update(**updates)


def accrue_referral_earnings(user_id, amount: Decimal) -> int:
    """Hire confirmed: the fee counts as earned and is pending payout."""
    minor = to_minor_units(amount)
    return increment_referral_stats(user_id, pending_earnings_minor=minor, total_earnings_minor=minor)


def settle_referral_earnings(user_id, amount: Decimal) -> int:
    """Payout completed: move the fee from pending to paid. Total is unchanged."""
    minor = to_minor_units(amount)
    return increment_referral_stats(user_id, pending_earnings_minor=-minor, paid_earnings_minor=minor)


def active_job_delta(old_status: str, new_status: str) -> int:
    was_active = old_status == Job.STATUS_ACTIVE
    is_active = new_status == Job.STATUS_ACTIVE
    if was_active == is_active:
        return 0
    return 1 if is_active else -1


def reconcile_company_active_jobs(company) -> int:
    """Recompute `active_jobs` from live job rows. Returns the stored value."""
    live = Job.objects.filter(company_id=company.pk, status=Job.STATUS_ACTIVE).count()
    Company.objects.filter(pk=company.pk).update(active_jobs=live)
    return live


def _rate(part, whole) -> int:
    if not whole:
        return 0
    return round(part * 100 / whole)


def job_performance(job) -> dict:
    """Job counters plus view-based conversion rates, as whole percentages."""
    return {
        "views": job.views,
        "applications": job.applications,
        "referrals": job.referrals,
        "referral_views": job.referral_views,
        "referral_applications": job.referral_applications,
        "referral_rate": _rate(job.referral_views, job.views),
        "application_rate": _rate(job.applications, job.views),
        "referral_application_rate": _rate(job.referral_applications, job.referral_views),
    }


def job_filter_options() -> dict:
    """Distinct values of the browse filters across active jobs."""
    active = Job.objects.filter(status=Job.STATUS_ACTIVE).order_by()

    def distinct(field):
        return sorted(value for value in active.values_list(field, flat=True).distinct() if value)

    return {
        "categories": distinct("category"),
        "locations": distinct("location_city"),
        "job_types": distinct("job_type"),
        "work_types": distinct("work_type"),
        "experience_levels": distinct("experience_level"),
    }
