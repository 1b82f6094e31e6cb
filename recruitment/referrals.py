import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferralAttribution:
    referred_by: Optional[object] = None
    is_referral: bool = False
    effective_code: Optional[str] = None


NO_REFERRAL = ReferralAttribution()


def normalize_referral_code(code) -> Optional[str]:
    if code is None:
        return None
    value = str(code).strip().upper()
    return value or None


def find_user_by_referral_code(code):
    normalized = normalize_referral_code(code)
    if not normalized:
        return None
    return get_user_model().objects.get_by_referral_code(normalized)


def resolve_referral(applicant, referral_code) -> ReferralAttribution:
    """
    Decide whether an application counts as a referral.

    Unknown codes and self-referrals are ignored rather than rejected, so a
    bad code never blocks the application itself.
    """
    code = normalize_referral_code(referral_code)
    if not code:
        return NO_REFERRAL

    referrer = find_user_by_referral_code(code)
    if referrer is None:
        logger.info("Ignoring unknown referral code", extra={"referral_code": code, "applicant_id": applicant.pk})
        return NO_REFERRAL

    if referrer.pk == applicant.pk:
        logger.info("Ignoring self-referral", extra={"referral_code": code, "applicant_id": applicant.pk})
        return NO_REFERRAL

    return ReferralAttribution(referred_by=referrer, is_referral=True, effective_code=code)
