from rest_framework import status
from rest_framework.exceptions import APIException


class RecruitmentError(APIException):
    """Base for client-facing recruitment errors; `default_code` is the stable error kind."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Recruitment operation failed."
    default_code = "RecruitmentError"

    @property
    def kind(self) -> str:
        return self.default_code


class DuplicateApplication(RecruitmentError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You have already applied for this job."
    default_code = "DuplicateApplication"


class JobNotAcceptingApplications(RecruitmentError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "This job is no longer accepting applications."
    default_code = "JobNotAcceptingApplications"


class InvalidTransition(RecruitmentError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This status change is not allowed."
    default_code = "InvalidTransition"


class Unauthorized(RecruitmentError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action."
    default_code = "Unauthorized"


class NotFound(RecruitmentError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "NotFound"


class PaymentIneligible(Exception):
    """Internal: a referral payment could not be recorded. Logged, never surfaced."""
