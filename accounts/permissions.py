"""Custom permissions for the application"""
from rest_framework import permissions


class IsCompany(permissions.BasePermission):
    """
    Permission to only allow company logins that own a Company profile.
    """

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.is_company and
            hasattr(request.user, 'company')
        )


class IsJobSeeker(permissions.BasePermission):
    """
    Permission to only allow job seekers.
    """

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            not request.user.is_company
        )


class IsStaffUser(permissions.BasePermission):
    """
    Permission to only allow platform staff.
    """

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            (request.user.is_staff or request.user.is_superuser)
        )

