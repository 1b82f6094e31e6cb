import re
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Company, User, build_referral_code, from_minor_units, to_minor_units
from accounts.utils import ACTOR_COMPANY, ACTOR_USER, Actor, resolve_actor

REFERRAL_CODE_RE = re.compile(r"^REF-[A-Z]{1,8}-\d{6}$")


def create_company(email='hr@acme.test', name='Acme Corp'):
    """Helper to build a company login with its profile"""
    user = User.objects.create_user(email=email, password='pass', is_company=True)
    return Company.objects.create(user=user, company_name=name)


class ReferralCodeTests(TestCase):
    def test_code_generated_for_job_seekers(self):
        user = User.objects.create_user(email='John@Example.com', password='pass', first_name='John')
        self.assertEqual(user.email, 'john@example.com')
        self.assertRegex(user.referral_code, REFERRAL_CODE_RE)
        self.assertTrue(user.referral_code.startswith('REF-JOHN-'))

    def test_name_is_reduced_to_letters(self):
        self.assertTrue(build_referral_code("Mary-Jane O'Neil").startswith('REF-MARYJANE-'))
        self.assertTrue(build_referral_code('').startswith('REF-USER-'))
        self.assertTrue(build_referral_code('Élodie').startswith('REF-LODIE-'))

    def test_company_logins_have_no_code(self):
        company = create_company()
        self.assertIsNone(company.user.referral_code)

    def test_code_cannot_change(self):
        user = User.objects.create_user(email='john@example.com', password='pass', first_name='John')
        user = User.objects.get(pk=user.pk)
        user.referral_code = 'REF-HACK-000000'
        with self.assertRaises(ValidationError):
            user.save()

    def test_collision_retries(self):
        existing = User.objects.create_user(email='john@example.com', password='pass', first_name='John')
        with mock.patch(
            'accounts.models.build_referral_code',
            side_effect=[existing.referral_code, 'REF-JOHN-654321'],
        ):
            user = User.objects.create_user(email='john2@example.com', password='pass', first_name='John')
        self.assertEqual(user.referral_code, 'REF-JOHN-654321')

    def test_lookup_by_code(self):
        user = User.objects.create_user(email='john@example.com', password='pass', first_name='John')
        self.assertEqual(User.objects.get_by_referral_code(user.referral_code.lower()), user)
        self.assertIsNone(User.objects.get_by_referral_code('REF-NONE-000000'))
        self.assertIsNone(User.objects.get_by_referral_code(''))


class ReferralStatsModelTests(TestCase):
    def test_success_rate(self):
        user = User.objects.create_user(email='john@example.com', password='pass', first_name='John')
        self.assertEqual(user.success_rate, 0)
        user.total_referrals = 3
        user.successful_referrals = 1
        self.assertEqual(user.success_rate, 33)

    def test_unbalanced_earnings_rejected_by_database(self):
        user = User.objects.create_user(email='john@example.com', password='pass', first_name='John')
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                User.objects.filter(pk=user.pk).update(total_earnings_minor=1000)

    def test_earnings_exposed_as_decimals(self):
        user = User.objects.create_user(email='john@example.com', password='pass', first_name='John')
        User.objects.filter(pk=user.pk).update(
            total_earnings_minor=101110, pending_earnings_minor=101010, paid_earnings_minor=100,
        )
        user.refresh_from_db()
        self.assertEqual(user.total_earnings, Decimal('1011.10'))
        self.assertEqual(user.pending_earnings, Decimal('1010.10'))
        self.assertEqual(user.paid_earnings, Decimal('1.00'))

    def test_minor_unit_conversion(self):
        self.assertEqual(to_minor_units(Decimal('0.10')), 10)
        self.assertEqual(to_minor_units('1000.10'), 100010)
        self.assertEqual(to_minor_units(None), 0)
        self.assertEqual(from_minor_units(70), Decimal('0.70'))


class ActorResolutionTests(TestCase):
    def test_job_seeker_acts_as_user(self):
        user = User.objects.create_user(email='john@example.com', password='pass')
        actor = resolve_actor(user)
        self.assertEqual(actor, Actor(kind=ACTOR_USER, id=user.pk))

    def test_company_login_acts_as_company(self):
        company = create_company()
        actor = resolve_actor(company.user)
        self.assertEqual(actor.kind, ACTOR_COMPANY)
        self.assertEqual(actor.id, company.pk)

    def test_company_without_profile_resolves_to_none(self):
        user = User.objects.create_user(email='new@acme.test', password='pass', is_company=True)
        self.assertIsNone(resolve_actor(user))


class AccountsApiTests(APITestCase):
    def test_register_job_seeker(self):
        resp = self.client.post(reverse('accounts:register'), {
            'email': 'jane@example.com',
            'password': 'S3cure-pass-123',
            'first_name': 'Jane',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(resp.data['data']['user']['referral_code'].startswith('REF-JANE-'))
        self.assertIn('access', resp.data['data']['tokens'])

    def test_register_company_requires_name(self):
        resp = self.client.post(reverse('accounts:register'), {
            'email': 'hr@acme.test',
            'password': 'S3cure-pass-123',
            'first_name': 'Acme',
            'is_company': True,
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.post(reverse('accounts:register'), {
            'email': 'hr@acme.test',
            'password': 'S3cure-pass-123',
            'first_name': 'Acme',
            'is_company': True,
            'company_name': 'Acme Corp',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Company.objects.filter(company_name='Acme Corp').exists())
        self.assertIsNone(resp.data['data']['user']['referral_code'])

    def test_login(self):
        User.objects.create_user(email='jane@example.com', password='pass', first_name='Jane')
        resp = self.client.post(reverse('accounts:login'), {
            'email': 'jane@example.com',
            'password': 'pass',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn('refresh', resp.data['data']['tokens'])

        resp = self.client.post(reverse('accounts:login'), {
            'email': 'jane@example.com',
            'password': 'wrong',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_referral_stats(self):
        user = User.objects.create_user(email='jane@example.com', password='pass', first_name='Jane')
        User.objects.filter(pk=user.pk).update(
            total_referrals=4,
            successful_referrals=1,
            total_earnings_minor=100000,
            pending_earnings_minor=100000,
        )
        self.client.force_authenticate(user)
        resp = self.client.get(reverse('accounts:referral-stats'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data['data']
        self.assertEqual(data['referral_code'], user.referral_code)
        self.assertEqual(data['total_referrals'], 4)
        self.assertEqual(data['pending_earnings'], '1000.00')
        self.assertEqual(data['success_rate'], 25)

    def test_referral_stats_not_for_companies(self):
        company = create_company()
        self.client.force_authenticate(company.user)
        resp = self.client.get(reverse('accounts:referral-stats'))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_profile_update_keeps_counters(self):
        user = User.objects.create_user(email='jane@example.com', password='pass', first_name='Jane')
        User.objects.filter(pk=user.pk).update(total_referrals=2)
        self.client.force_authenticate(user)
        resp = self.client.patch(reverse('accounts:user-profile'), {'last_name': 'Doe'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.last_name, 'Doe')
        self.assertEqual(user.total_referrals, 2)

    def test_company_profile(self):
        company = create_company()
        self.client.force_authenticate(company.user)
        resp = self.client.get(reverse('accounts:company-profile'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['company_name'], 'Acme Corp')
        self.assertEqual(resp.data['data']['stats']['active_jobs'], 0)
