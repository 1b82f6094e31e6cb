from unittest import mock

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import User
from notifications.models import Notification
from notifications.services import notify, notify_on_commit


class NotifyServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email='notify@example.com', password='pass')

    def test_notify_creates_unread_notification(self):
        note = notify(self.user.pk, Notification.KIND_REFERRAL_HIRED, {'job_title': 'Engineer', 'amount': '1000.00', 'currency': 'GBP'})
        self.assertEqual(note.status, Notification.STATUS_UNREAD)
        self.assertEqual(note.title, 'Your referral was hired')
        self.assertIn('Engineer', note.body)
        self.assertEqual(note.data['amount'], '1000.00')

    def test_notify_swallows_failures(self):
        with mock.patch('notifications.services.Notification.objects.create', side_effect=RuntimeError('db down')):
            with self.assertLogs('notifications.services', level='ERROR'):
                self.assertIsNone(notify(self.user.pk, Notification.KIND_APPLICATION_SUBMITTED, {}))

    def test_notify_without_recipient(self):
        self.assertIsNone(notify(None, Notification.KIND_APPLICATION_SUBMITTED, {}))
        self.assertFalse(Notification.objects.exists())

    def test_notify_on_commit_waits_for_commit(self):
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            notify_on_commit(self.user.pk, Notification.KIND_APPLICATION_SUBMITTED, {'job_title': 'Engineer'})
            self.assertFalse(Notification.objects.exists())
        self.assertEqual(len(callbacks), 1)
        callbacks[0]()
        self.assertTrue(Notification.objects.filter(user=self.user).exists())


class NotificationTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(email='notify@example.com', password='pass')
        Notification.objects.create(user=self.user, kind=Notification.KIND_REFERRAL_HIRED, title='Test', body='Hello')
        Notification.objects.create(
            user=self.user,
            kind=Notification.KIND_APPLICATION_STATUS_CHANGED,
            title='Read',
            body='World',
            status=Notification.STATUS_READ,
        )

    def test_list_notifications(self):
        self.client.force_authenticate(self.user)
        url = reverse('notifications:notifications')
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data.get('data', [])), 2)

    def test_filter_by_status_and_kind(self):
        self.client.force_authenticate(self.user)
        url = reverse('notifications:notifications')
        resp = self.client.get(url, {'status': Notification.STATUS_UNREAD})
        self.assertEqual(len(resp.data['data']), 1)
        resp = self.client.get(url, {'kind': Notification.KIND_APPLICATION_STATUS_CHANGED})
        self.assertEqual(resp.data['data'][0]['title'], 'Read')

    def test_mark_read(self):
        note = Notification.objects.create(user=self.user, kind=Notification.KIND_REFERRAL_HIRED, title='Unread', body='Body')
        self.client.force_authenticate(self.user)
        url = reverse('notifications:notifications-mark-read')
        resp = self.client.post(url, {'notification_ids': [note.id]}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['updated'], 1)
        note.refresh_from_db()
        self.assertEqual(note.status, Notification.STATUS_READ)
        self.assertIsNotNone(note.read_at)

    def test_cannot_mark_other_users_notifications(self):
        other = User.objects.create_user(email='other@example.com', password='pass')
        note = Notification.objects.create(user=other, kind=Notification.KIND_REFERRAL_HIRED, title='Theirs')
        self.client.force_authenticate(self.user)
        resp = self.client.post(reverse('notifications:notifications-mark-read'), {'notification_ids': [note.id]}, format='json')
        self.assertEqual(resp.data['data']['updated'], 0)
        note.refresh_from_db()
        self.assertEqual(note.status, Notification.STATUS_UNREAD)
