from dataclasses import dataclass
from typing import Optional

from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

ACTOR_USER = "user"
ACTOR_COMPANY = "company"
ACTOR_SYSTEM = "system"

ACTOR_KIND_CHOICES = [
    (ACTOR_USER, "User"),
    (ACTOR_COMPANY, "Company"),
    (ACTOR_SYSTEM, "System"),
]


@dataclass(frozen=True)
class Actor:
    """Who performed an action: a job seeker, a company, or the system itself."""

    kind: str
    id: Optional[int] = None

    @property
    def is_company(self) -> bool:
        return self.kind == ACTOR_COMPANY

    @property
    def is_user(self) -> bool:
        return self.kind == ACTOR_USER

    @property
    def is_system(self) -> bool:
        return self.kind == ACTOR_SYSTEM

    @classmethod
    def system(cls) -> "Actor":
        return cls(kind=ACTOR_SYSTEM)

    @classmethod
    def for_user(cls, user) -> "Actor":
        return cls(kind=ACTOR_USER, id=user.pk)

    @classmethod
    def for_company(cls, company) -> "Actor":
        return cls(kind=ACTOR_COMPANY, id=company.pk)


def resolve_actor(user) -> Optional[Actor]:
    """
    Map an authenticated login onto the identity it acts as.

    Company logins act as their Company profile; everybody else acts as
    themselves. Returns None for anonymous users or company logins that
    have not finished creating their profile.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    if user.is_company:
        company = getattr(user, "company", None)
        if company is None:
            return None
        return Actor.for_company(company)
    return Actor.for_user(user)


def _error_kind(exc) -> str:
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        if isinstance(codes, str):
            return codes
        return getattr(exc, "default_code", "error")
    return "error"


def custom_exception_handler(exc, context):
    """Custom exception handler for consistent API responses"""
    response = exception_handler(exc, context)

    if response is not None:
        custom_response = {
            'success': False,
            'error': _error_kind(exc),
            'message': 'An error occurred',
            'data': None,
            'errors': []
        }

        if isinstance(response.data, dict):
            if 'detail' in response.data:
                custom_response['message'] = str(response.data['detail'])
            else:
                custom_response['errors'] = response.data
        elif isinstance(response.data, list):
            custom_response['errors'] = response.data
        else:
            custom_response['message'] = str(response.data)

        response.data = custom_response

    return response


def api_response(success=True, message='', data=None, errors=None, status=200):
    """Consistent API response format"""
    response_data = {
        'success': success,
        'message': message,
        'data': data if data is not None else {},
        'errors': errors if errors is not None else []
    }
    return Response(response_data, status=status)
