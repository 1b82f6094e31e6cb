from django.db import models
from django.utils import timezone
from django.conf import settings


class Notification(models.Model):
    """In-app notification feed for users."""

    KIND_APPLICATION_SUBMITTED = 'application_submitted'
    KIND_REFERRAL_APPLICATION = 'referral_application'
    KIND_APPLICATION_STATUS_CHANGED = 'application_status_changed'
    KIND_REFERRAL_HIRED = 'referral_hired'
    KIND_REFERRAL_PAYMENT_PAID = 'referral_payment_paid'

    KIND_CHOICES = [
        (KIND_APPLICATION_SUBMITTED, 'Application submitted'),
        (KIND_REFERRAL_APPLICATION, 'Referral application'),
        (KIND_APPLICATION_STATUS_CHANGED, 'Application status changed'),
        (KIND_REFERRAL_HIRED, 'Referral hired'),
        (KIND_REFERRAL_PAYMENT_PAID, 'Referral payment paid'),
    ]

    STATUS_UNREAD = 'UNREAD'
    STATUS_READ = 'READ'

    STATUS_CHOICES = [
        (STATUS_UNREAD, 'Unread'),
        (STATUS_READ, 'Read'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    kind = models.CharField(max_length=40, choices=KIND_CHOICES, db_index=True)
    title = models.CharField(max_length=255)
    body = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_UNREAD, db_index=True)
    data = models.JSONField(null=True, blank=True, help_text='Additional payload for the frontend')
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        indexes = [
            models.Index(fields=['user', 'status'], name='notifications_user_status_idx'),
            models.Index(fields=['created_at'], name='notifications_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.kind} -> {self.user_id}"

    def mark_read(self):
        if self.status != self.STATUS_READ:
            self.status = self.STATUS_READ
            self.read_at = timezone.now()
            self.save(update_fields=['status', 'read_at'])
