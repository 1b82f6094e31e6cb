from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from accounts.models import Company
from accounts.utils import Actor
from notifications.models import Notification
from recruitment import payments, services, stats
from recruitment.exceptions import (
    DuplicateApplication,
    InvalidTransition,
    JobNotAcceptingApplications,
    Unauthorized,
)
from recruitment.models import Application, ApplicationInterview, Job
from recruitment.referrals import resolve_referral

User = get_user_model()


class RecruitmentFixturesMixin:
    def make_company(self, email="hr@acme.test", name="Acme Corp"):
        user = User.objects.create_user(email=email, password="pass", is_company=True)
        return Company.objects.create(user=user, company_name=name)

    def make_seeker(self, email, first_name="Jane", **extra):
        return User.objects.create_user(email=email, password="pass", first_name=first_name, **extra)

    def make_job(self, company, **fields):
        fields.setdefault("title", "Backend Engineer")
        fields.setdefault("description", "Build the referral platform.")
        fields.setdefault("status", Job.STATUS_ACTIVE)
        fields.setdefault("referral_fee", Decimal("1000.00"))
        return services.create_job(company=company, **fields)

    def company_actor(self, company):
        return Actor.for_company(company)

    def user_actor(self, user):
        return Actor.for_user(user)

    def advance(self, application, *statuses, actor=None):
        actor = actor or self.company_actor(application.company)
        for value in statuses:
            services.transition_application(application=application, new_status=value, actor=actor)
        application.refresh_from_db()
        return application


class ReferralAttributionTests(RecruitmentFixturesMixin, TestCase):
    def setUp(self):
        self.referrer = self.make_seeker("john@example.com", first_name="John")
        self.applicant = self.make_seeker("bob@example.com", first_name="Bob")

    def test_known_code_is_a_referral(self):
        attribution = resolve_referral(self.applicant, self.referrer.referral_code)
        self.assertTrue(attribution.is_referral)
        self.assertEqual(attribution.referred_by, self.referrer)
        self.assertEqual(attribution.effective_code, self.referrer.referral_code)

    def test_lookup_is_case_insensitive(self):
        attribution = resolve_referral(self.applicant, f"  {self.referrer.referral_code.lower()} ")
        self.assertTrue(attribution.is_referral)
        self.assertEqual(attribution.effective_code, self.referrer.referral_code)

    def test_unknown_code_is_ignored(self):
        attribution = resolve_referral(self.applicant, "REF-NOBODY-000000")
        self.assertFalse(attribution.is_referral)
        self.assertIsNone(attribution.referred_by)
        self.assertIsNone(attribution.effective_code)

    def test_self_referral_is_ignored(self):
        attribution = resolve_referral(self.referrer, self.referrer.referral_code)
        self.assertFalse(attribution.is_referral)
        self.assertIsNone(attribution.referred_by)

    def test_inactive_referrer_is_ignored(self):
        User.objects.filter(pk=self.referrer.pk).update(is_active=False)
        attribution = resolve_referral(self.applicant, self.referrer.referral_code)
        self.assertFalse(attribution.is_referral)

    def test_blank_code_is_direct(self):
        self.assertFalse(resolve_referral(self.applicant, "").is_referral)
        self.assertFalse(resolve_referral(self.applicant, None).is_referral)


class SubmitApplicationTests(RecruitmentFixturesMixin, TestCase):
    def setUp(self):
        self.company = self.make_company()
        self.job = self.make_job(self.company)
        self.referrer = self.make_seeker("john@example.com", first_name="John")
        self.applicant = self.make_seeker("bob@example.com", first_name="Bob")

    def test_direct_application(self):
        application = services.submit_application(job=self.job, applicant=self.applicant, cover_letter="Hi")

        self.assertEqual(application.status, Application.STATUS_PENDING)
        self.assertFalse(application.is_referral)
        self.assertEqual(application.application_source, Application.SOURCE_DIRECT)
        self.assertEqual(application.company_id, self.company.pk)
        history = list(application.status_history.all())
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].status, Application.STATUS_PENDING)
        self.assertEqual(history[0].actor, Actor.for_user(self.applicant))

        self.job.refresh_from_db()
        self.company.refresh_from_db()
        self.assertEqual(self.job.applications, 1)
        self.assertEqual(self.job.referral_applications, 0)
        self.assertEqual(self.company.total_applications, 1)

    def test_referral_application_updates_counters(self):
        application = services.submit_application(
            job=self.job,
            applicant=self.applicant,
            referral_code=self.referrer.referral_code.lower(),
        )

        self.assertTrue(application.is_referral)
        self.assertEqual(application.referred_by, self.referrer)
        self.assertEqual(application.referral_code, self.referrer.referral_code)
        self.assertEqual(application.application_source, Application.SOURCE_REFERRAL)

        self.job.refresh_from_db()
        self.referrer.refresh_from_db()
        self.assertEqual(self.job.applications, 1)
        self.assertEqual(self.job.referral_applications, 1)
        self.assertEqual(self.referrer.total_referrals, 1)
        self.assertEqual(self.referrer.successful_referrals, 0)

    def test_unknown_code_still_submits_as_direct(self):
        application = services.submit_application(
            job=self.job,
            applicant=self.applicant,
            referral_code="REF-GHOST-123456",
        )
        self.assertFalse(application.is_referral)
        self.assertIsNone(application.referred_by)

    def test_duplicate_application_is_rejected(self):
        services.submit_application(job=self.job, applicant=self.applicant)
        with self.assertRaises(DuplicateApplication):
            services.submit_application(job=self.job, applicant=self.applicant)

        self.job.refresh_from_db()
        self.assertEqual(self.job.applications, 1)
        self.assertEqual(Application.objects.filter(job=self.job, applicant=self.applicant).count(), 1)

    def test_duplicate_detected_by_database_constraint(self):
        services.submit_application(job=self.job, applicant=self.applicant)
        with mock.patch("recruitment.services._application_exists", return_value=False):
            with self.assertRaises(DuplicateApplication):
                services.submit_application(job=self.job, applicant=self.applicant)

        self.job.refresh_from_db()
        self.assertEqual(self.job.applications, 1)

    def test_inactive_job_rejects_applications(self):
        for value in (Job.STATUS_PAUSED, Job.STATUS_CLOSED, Job.STATUS_FILLED):
            job = self.make_job(self.company, title=f"Job {value}")
            services.change_job_status(job=job, new_status=value)
            with self.assertRaises(JobNotAcceptingApplications):
                services.submit_application(job=job, applicant=self.applicant)

        draft = self.make_job(self.company, title="Draft", status=Job.STATUS_DRAFT)
        with self.assertRaises(JobNotAcceptingApplications):
            services.submit_application(job=draft, applicant=self.applicant)

    def test_deadline_passed_rejects_applications(self):
        job = self.make_job(self.company, application_deadline=timezone.now() - timedelta(hours=1))
        with self.assertRaises(JobNotAcceptingApplications):
            services.submit_application(job=job, applicant=self.applicant)

    def test_max_applications_reached(self):
        job = self.make_job(self.company, max_applications=1)
        services.submit_application(job=job, applicant=self.referrer)
        with self.assertRaises(JobNotAcceptingApplications):
            services.submit_application(job=job, applicant=self.applicant)

    def test_company_login_cannot_apply(self):
        with self.assertRaises(Unauthorized):
            services.submit_application(job=self.job, applicant=self.company.user)

    def test_notifications_sent_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            services.submit_application(
                job=self.job,
                applicant=self.applicant,
                referral_code=self.referrer.referral_code,
            )

        self.assertTrue(
            Notification.objects.filter(
                user=self.company.user,
                kind=Notification.KIND_APPLICATION_SUBMITTED,
            ).exists()
        )
        self.assertTrue(
            Notification.objects.filter(
                user=self.referrer,
                kind=Notification.KIND_REFERRAL_APPLICATION,
            ).exists()
        )

    def test_failed_notification_does_not_break_submission(self):
        with mock.patch("notifications.services.Notification.objects.create", side_effect=RuntimeError("down")):
            with self.assertLogs("notifications.services", level="ERROR"):
                with self.captureOnCommitCallbacks(execute=True):
                    application = services.submit_application(job=self.job, applicant=self.applicant)

        self.assertTrue(Application.objects.filter(pk=application.pk).exists())


class ApplicationTransitionTests(RecruitmentFixturesMixin, TestCase):
    def setUp(self):
        self.company = self.make_company()
        self.other_company = self.make_company(email="hr@other.test", name="Other")
        self.job = self.make_job(self.company)
        self.applicant = self.make_seeker("bob@example.com", first_name="Bob")
        self.application = services.submit_application(job=self.job, applicant=self.applicant)

    def test_forward_transitions_append_history(self):
        self.advance(
            self.application,
            Application.STATUS_REVIEWING,
            Application.STATUS_SHORTLISTED,
            Application.STATUS_INTERVIEWING,
            Application.STATUS_OFFERED,
        )
        self.assertEqual(self.application.status, Application.STATUS_OFFERED)
        self.assertEqual(
            list(self.application.status_history.values_list("status", flat=True)),
            [
                Application.STATUS_PENDING,
                Application.STATUS_REVIEWING,
                Application.STATUS_SHORTLISTED,
                Application.STATUS_INTERVIEWING,
                Application.STATUS_OFFERED,
            ],
        )
        last = self.application.status_history.last()
        self.assertEqual(last.actor, Actor.for_company(self.company))

    def test_company_feedback_updates_only_given_fields(self):
        actor = self.company_actor(self.company)
        services.transition_application(
            application=self.application,
            new_status=Application.STATUS_REVIEWING,
            actor=actor,
            feedback={"rating": 3, "notes": "First pass"},
        )
        services.transition_application(
            application=self.application,
            new_status=Application.STATUS_SHORTLISTED,
            actor=actor,
            feedback={"recommendation": "hire", "strengths": ["Ownership"]},
        )

        self.application.refresh_from_db()
        self.assertEqual(self.application.feedback_rating, 3)
        self.assertEqual(self.application.feedback_notes, "First pass")
        self.assertEqual(self.application.feedback_recommendation, "hire")
        self.assertEqual(self.application.feedback_strengths, ["Ownership"])
        self.assertIsNotNone(self.application.feedback_reviewed_at)

    def test_feedback_ignored_for_applicant_withdrawal(self):
        services.transition_application(
            application=self.application,
            new_status=Application.STATUS_WITHDRAWN,
            actor=self.user_actor(self.applicant),
            feedback={"rating": 5},
        )
        self.application.refresh_from_db()
        self.assertIsNone(self.application.feedback_rating)
        self.assertIsNone(self.application.feedback_reviewed_at)

    def test_backward_transition_is_invalid(self):
        self.advance(self.application, Application.STATUS_SHORTLISTED)
        with self.assertRaises(InvalidTransition):
            services.transition_application(
                application=self.application,
                new_status=Application.STATUS_REVIEWING,
                actor=self.company_actor(self.company),
            )

    def test_same_status_is_invalid(self):
        with self.assertRaises(InvalidTransition):
            services.transition_application(
                application=self.application,
                new_status=Application.STATUS_PENDING,
                actor=self.company_actor(self.company),
            )

    def test_unknown_status_is_invalid(self):
        with self.assertRaises(InvalidTransition):
            services.transition_application(
                application=self.application,
                new_status="archived",
                actor=self.company_actor(self.company),
            )

    def test_terminal_states_accept_no_transitions(self):
        for terminal in (Application.STATUS_HIRED, Application.STATUS_REJECTED):
            applicant = self.make_seeker(f"{terminal}@example.com")
            application = services.submit_application(job=self.job, applicant=applicant)
            self.advance(application, terminal)
            entries = application.status_history.count()

            for target in (Application.STATUS_REVIEWING, Application.STATUS_REJECTED, Application.STATUS_HIRED):
                with self.assertRaises(InvalidTransition):
                    services.transition_application(
                        application=application,
                        new_status=target,
                        actor=self.company_actor(self.company),
                    )
            with self.assertRaises(InvalidTransition):
                services.withdraw_application(application=application, actor=self.user_actor(applicant))

            self.assertEqual(application.status_history.count(), entries)

    def test_company_can_reject_from_any_open_state(self):
        self.advance(self.application, Application.STATUS_OFFERED, Application.STATUS_REJECTED)
        self.assertEqual(self.application.status, Application.STATUS_REJECTED)

    def test_applicant_cannot_drive_pipeline(self):
        with self.assertRaises(Unauthorized):
            services.transition_application(
                application=self.application,
                new_status=Application.STATUS_REVIEWING,
                actor=self.user_actor(self.applicant),
            )

    def test_other_company_is_unauthorized(self):
        with self.assertRaises(Unauthorized):
            services.transition_application(
                application=self.application,
                new_status=Application.STATUS_REVIEWING,
                actor=self.company_actor(self.other_company),
            )
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, Application.STATUS_PENDING)

    def test_missing_actor_is_unauthorized(self):
        with self.assertRaises(Unauthorized):
            services.transition_application(
                application=self.application,
                new_status=Application.STATUS_REVIEWING,
                actor=None,
            )

    def test_applicant_withdraws_early(self):
        self.advance(self.application, Application.STATUS_SHORTLISTED)
        services.withdraw_application(
            application=self.application,
            actor=self.user_actor(self.applicant),
            reason="Accepted another offer",
        )
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, Application.STATUS_WITHDRAWN)
        last = self.application.status_history.last()
        self.assertEqual(last.note, "Accepted another offer")
        self.assertEqual(last.actor, Actor.for_user(self.applicant))

    def test_withdraw_after_interviewing_is_invalid(self):
        self.advance(self.application, Application.STATUS_INTERVIEWING)
        with self.assertRaises(InvalidTransition):
            services.withdraw_application(application=self.application, actor=self.user_actor(self.applicant))

    def test_withdraw_twice_is_invalid(self):
        actor = self.user_actor(self.applicant)
        services.withdraw_application(application=self.application, actor=actor)
        with self.assertRaises(InvalidTransition):
            services.withdraw_application(application=self.application, actor=actor)
        self.assertEqual(
            self.application.status_history.filter(status=Application.STATUS_WITHDRAWN).count(),
            1,
        )

    def test_company_cannot_withdraw(self):
        with self.assertRaises(Unauthorized):
            services.withdraw_application(application=self.application, actor=self.company_actor(self.company))

    def test_other_user_cannot_withdraw(self):
        stranger = self.make_seeker("eve@example.com")
        with self.assertRaises(Unauthorized):
            services.withdraw_application(application=self.application, actor=self.user_actor(stranger))

    def test_stale_instance_sees_terminal_state(self):
        stale = Application.objects.get(pk=self.application.pk)
        self.advance(self.application, Application.STATUS_HIRED)
        with self.assertRaises(InvalidTransition):
            services.withdraw_application(application=stale, actor=self.user_actor(self.applicant))

    def test_status_change_notifies_applicant(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.advance(self.application, Application.STATUS_REVIEWING)
        notification = Notification.objects.get(
            user=self.applicant,
            kind=Notification.KIND_APPLICATION_STATUS_CHANGED,
        )
        self.assertEqual(notification.data["status"], Application.STATUS_REVIEWING)


class ReferralHireTests(RecruitmentFixturesMixin, TestCase):
    def setUp(self):
        self.company = self.make_company()
        self.job = self.make_job(self.company, referral_fee=Decimal("1000.00"))
        self.referrer = self.make_seeker("john@example.com", first_name="John")
        self.applicant = self.make_seeker("bob@example.com", first_name="Bob")
        self.application = services.submit_application(
            job=self.job,
            applicant=self.applicant,
            referral_code=self.referrer.referral_code,
        )

    def assertEarningsBalanced(self, user):
        user.refresh_from_db()
        self.assertEqual(user.total_earnings, user.pending_earnings + user.paid_earnings)

    def test_referral_hire_scenario(self):
        self.advance(
            self.application,
            Application.STATUS_REVIEWING,
            Application.STATUS_SHORTLISTED,
            Application.STATUS_HIRED,
        )

        self.referrer.refresh_from_db()
        self.company.refresh_from_db()
        self.assertEqual(self.referrer.pending_earnings, Decimal("1000.00"))
        self.assertEqual(self.referrer.total_earnings, Decimal("1000.00"))
        self.assertEqual(self.referrer.paid_earnings, Decimal("0.00"))
        self.assertEqual(self.referrer.successful_referrals, 1)
        self.assertEqual(self.company.total_hires, 1)
        self.assertEarningsBalanced(self.referrer)

        self.assertTrue(self.application.payment_is_eligible)
        self.assertEqual(self.application.payment_amount, Decimal("1000.00"))
        self.assertEqual(self.application.payment_currency, "GBP")
        self.assertEqual(self.application.payment_status, Application.PAYMENT_PENDING)
        self.assertTrue(self.application.payment_reference.startswith("REF-PAY-"))
        self.assertIsNotNone(self.application.hire_recorded_at)

    def test_direct_hire_has_no_referral_side_effects(self):
        applicant = self.make_seeker("carol@example.com")
        application = services.submit_application(job=self.job, applicant=applicant)
        self.advance(application, Application.STATUS_HIRED)

        self.company.refresh_from_db()
        self.assertEqual(self.company.total_hires, 0)
        self.assertFalse(application.payment_is_eligible)
        self.assertIsNone(application.payment_status)

    def test_hire_side_effects_are_idempotent(self):
        self.advance(self.application, Application.STATUS_HIRED)
        self.assertFalse(services.apply_hire_side_effects(self.application))
        self.assertFalse(payments.record_eligible_payment(self.application))

        self.referrer.refresh_from_db()
        self.company.refresh_from_db()
        self.assertEqual(self.referrer.pending_earnings, Decimal("1000.00"))
        self.assertEqual(self.referrer.total_earnings, Decimal("1000.00"))
        self.assertEqual(self.referrer.successful_referrals, 1)
        self.assertEqual(self.company.total_hires, 1)

    def test_payment_recorded_once_even_without_hire_guard(self):
        self.advance(self.application, Application.STATUS_HIRED)
        Application.objects.filter(pk=self.application.pk).update(hire_recorded_at=None)

        self.assertTrue(services.apply_hire_side_effects(self.application))
        self.referrer.refresh_from_db()
        self.assertEqual(self.referrer.pending_earnings, Decimal("1000.00"))
        self.assertEarningsBalanced(self.referrer)

    def test_fee_is_read_from_job_at_hire_time(self):
        job = self.make_job(
            self.company,
            title="Designer",
            status=Job.STATUS_DRAFT,
            referral_fee=Decimal("250.00"),
            referral_fee_currency="EUR",
        )
        services.change_job_status(job=job, new_status=Job.STATUS_ACTIVE)
        applicant = self.make_seeker("dan@example.com")
        application = services.submit_application(
            job=job,
            applicant=applicant,
            referral_code=self.referrer.referral_code,
        )
        self.advance(application, Application.STATUS_HIRED)

        self.assertEqual(application.payment_amount, Decimal("250.00"))
        self.assertEqual(application.payment_currency, "EUR")

    def test_missing_job_marks_payment_ineligible(self):
        with mock.patch("recruitment.payments._get_job_for_payment", return_value=None):
            with self.assertLogs("recruitment.payments", level="ERROR"):
                self.advance(self.application, Application.STATUS_HIRED)

        self.assertEqual(self.application.status, Application.STATUS_HIRED)
        self.assertFalse(self.application.payment_is_eligible)
        self.assertIsNone(self.application.payment_status)
        self.referrer.refresh_from_db()
        self.assertEqual(self.referrer.pending_earnings, Decimal("0.00"))
        self.assertEqual(self.referrer.total_earnings, Decimal("0.00"))
        self.assertEarningsBalanced(self.referrer)

    def test_failing_side_effects_do_not_block_hire(self):
        with mock.patch("recruitment.stats.increment_company_counters", side_effect=RuntimeError("boom")):
            with self.assertLogs("recruitment.services", level="ERROR"):
                self.advance(self.application, Application.STATUS_HIRED)

        self.assertEqual(self.application.status, Application.STATUS_HIRED)
        self.assertIsNone(self.application.hire_recorded_at)
        self.referrer.refresh_from_db()
        self.assertEqual(self.referrer.pending_earnings, Decimal("0.00"))
        self.assertEqual(
            self.application.status_history.filter(status=Application.STATUS_HIRED).count(),
            1,
        )

    def test_referrer_notified_of_hire(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.advance(self.application, Application.STATUS_HIRED)
        notification = Notification.objects.get(user=self.referrer, kind=Notification.KIND_REFERRAL_HIRED)
        self.assertEqual(notification.data["amount"], "1000.00")


class ReferralPaymentLedgerTests(RecruitmentFixturesMixin, TestCase):
    def setUp(self):
        self.company = self.make_company()
        self.job = self.make_job(self.company, referral_fee=Decimal("1500.00"))
        self.referrer = self.make_seeker("john@example.com", first_name="John")
        self.applicant = self.make_seeker("bob@example.com", first_name="Bob")
        self.application = services.submit_application(
            job=self.job,
            applicant=self.applicant,
            referral_code=self.referrer.referral_code,
        )
        self.advance(self.application, Application.STATUS_HIRED)

    def assertBalanced(self):
        self.referrer.refresh_from_db()
        self.assertEqual(
            self.referrer.total_earnings,
            self.referrer.pending_earnings + self.referrer.paid_earnings,
        )

    def test_payout_moves_pending_to_paid(self):
        payments.mark_payment_processing(self.application)
        self.assertEqual(self.application.payment_status, Application.PAYMENT_PROCESSING)
        self.assertBalanced()

        with self.captureOnCommitCallbacks(execute=True):
            payments.mark_payment_paid(self.application, reference="GW-12345")

        self.application.refresh_from_db()
        self.assertEqual(self.application.payment_status, Application.PAYMENT_PAID)
        self.assertEqual(self.application.payment_reference, "GW-12345")
        self.assertIsNotNone(self.application.payment_paid_at)

        self.referrer.refresh_from_db()
        self.company.refresh_from_db()
        self.assertEqual(self.referrer.pending_earnings, Decimal("0.00"))
        self.assertEqual(self.referrer.paid_earnings, Decimal("1500.00"))
        self.assertEqual(self.referrer.total_earnings, Decimal("1500.00"))
        self.assertEqual(self.company.total_referrals_paid, 1)
        self.assertBalanced()
        self.assertTrue(
            Notification.objects.filter(user=self.referrer, kind=Notification.KIND_REFERRAL_PAYMENT_PAID).exists()
        )

    def test_paid_replay_is_a_no_op(self):
        payments.mark_payment_paid(self.application)
        payments.mark_payment_paid(self.application)

        self.referrer.refresh_from_db()
        self.company.refresh_from_db()
        self.assertEqual(self.referrer.paid_earnings, Decimal("1500.00"))
        self.assertEqual(self.company.total_referrals_paid, 1)
        self.assertBalanced()

    def test_paid_is_final(self):
        payments.mark_payment_paid(self.application)
        with self.assertRaises(InvalidTransition):
            payments.mark_payment_processing(self.application)
        with self.assertRaises(InvalidTransition):
            payments.mark_payment_failed(self.application, reason="chargeback")

    def test_failed_payment_keeps_earnings_pending(self):
        payments.mark_payment_processing(self.application)
        payments.mark_payment_failed(self.application, reason="Bank rejected transfer")

        self.application.refresh_from_db()
        self.assertEqual(self.application.payment_status, Application.PAYMENT_FAILED)
        self.assertEqual(self.application.payment_notes, "Bank rejected transfer")
        self.referrer.refresh_from_db()
        self.assertEqual(self.referrer.pending_earnings, Decimal("1500.00"))
        self.assertBalanced()

        payments.mark_payment_processing(self.application)
        payments.mark_payment_paid(self.application)
        self.referrer.refresh_from_db()
        self.assertEqual(self.referrer.paid_earnings, Decimal("1500.00"))
        self.assertBalanced()

    def test_failed_cannot_jump_to_paid(self):
        payments.mark_payment_failed(self.application)
        with self.assertRaises(InvalidTransition):
            payments.mark_payment_paid(self.application)

    def test_payout_requires_eligible_payment(self):
        applicant = self.make_seeker("carol@example.com")
        direct = services.submit_application(job=self.job, applicant=applicant)
        with self.assertRaises(InvalidTransition):
            payments.mark_payment_paid(direct)

    def test_fractional_fees_stay_balanced_through_payout(self):
        hired = []
        for index, fee in enumerate(["0.10", "0.20", "0.70", "1000.10"]):
            job = self.make_job(self.company, title=f"Role {index}", referral_fee=Decimal(fee))
            applicant = self.make_seeker(f"candidate{index}@example.com")
            application = services.submit_application(
                job=job,
                applicant=applicant,
                referral_code=self.referrer.referral_code,
            )
            hired.append(self.advance(application, Application.STATUS_HIRED))

        self.referrer.refresh_from_db()
        self.assertEqual(self.referrer.pending_earnings, Decimal("2501.10"))

        for application in hired:
            payments.mark_payment_paid(application)
            self.assertBalanced()

        self.assertEqual(self.referrer.total_earnings, Decimal("2501.10"))
        self.assertEqual(self.referrer.pending_earnings, Decimal("1500.00"))
        self.assertEqual(self.referrer.paid_earnings, Decimal("1001.10"))

    def test_gateway_reference_cannot_be_reused(self):
        payments.mark_payment_paid(self.application, reference="GW-777")

        job = self.make_job(self.company, title="Second role")
        applicant = self.make_seeker("carol@example.com")
        other = services.submit_application(job=job, applicant=applicant, referral_code=self.referrer.referral_code)
        self.advance(other, Application.STATUS_HIRED)

        with self.assertRaises(ValidationError):
            payments.mark_payment_paid(other, reference="GW-777")

        other.refresh_from_db()
        self.assertEqual(other.payment_status, Application.PAYMENT_PENDING)
        self.assertNotEqual(other.payment_reference, "GW-777")
        self.referrer.refresh_from_db()
        self.assertEqual(self.referrer.paid_earnings, Decimal("1500.00"))
        self.assertBalanced()

    def test_paid_with_own_reference_again_is_accepted(self):
        payments.mark_payment_processing(self.application)
        payments.mark_payment_paid(self.application, reference=self.application.payment_reference)
        self.application.refresh_from_db()
        self.assertEqual(self.application.payment_status, Application.PAYMENT_PAID)

    def test_references_are_unique(self):
        references = {payments.generate_payment_reference() for _ in range(50)}
        self.assertEqual(len(references), 50)


class InterviewSchedulingTests(RecruitmentFixturesMixin, TestCase):
    def setUp(self):
        self.company = self.make_company()
        self.job = self.make_job(self.company)
        self.applicant = self.make_seeker("bob@example.com")
        self.application = services.submit_application(job=self.job, applicant=self.applicant)
        self.when = timezone.now() + timedelta(days=3)

    def test_scheduling_moves_application_to_interviewing(self):
        interview = services.schedule_interview(
            application=self.application,
            actor=self.company_actor(self.company),
            interview_type="video",
            scheduled_at=self.when,
            meeting_link="https://meet.example.com/abc",
        )
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, Application.STATUS_INTERVIEWING)
        self.assertEqual(interview.status, ApplicationInterview.STATUS_SCHEDULED)
        self.assertEqual(interview.duration_minutes, 60)

    def test_scheduling_after_offer_keeps_status(self):
        self.advance(self.application, Application.STATUS_OFFERED)
        services.schedule_interview(
            application=self.application,
            actor=self.company_actor(self.company),
            interview_type="final",
            scheduled_at=self.when,
        )
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, Application.STATUS_OFFERED)
        self.assertEqual(self.application.interviews.count(), 1)

    def test_only_owning_company_can_schedule(self):
        with self.assertRaises(Unauthorized):
            services.schedule_interview(
                application=self.application,
                actor=self.user_actor(self.applicant),
                interview_type="phone",
                scheduled_at=self.when,
            )

    def test_terminal_application_cannot_be_scheduled(self):
        self.advance(self.application, Application.STATUS_REJECTED)
        with self.assertRaises(InvalidTransition):
            services.schedule_interview(
                application=self.application,
                actor=self.company_actor(self.company),
                interview_type="phone",
                scheduled_at=self.when,
            )
        self.assertFalse(ApplicationInterview.objects.exists())


class JobLifecycleTests(RecruitmentFixturesMixin, TestCase):
    def setUp(self):
        self.company = self.make_company()
        self.other_company = self.make_company(email="hr@other.test", name="Other")

    def assertActiveJobsInSync(self):
        self.company.refresh_from_db()
        live = Job.objects.filter(company=self.company, status=Job.STATUS_ACTIVE).count()
        self.assertEqual(self.company.active_jobs, live)

    def test_create_job_updates_company_counters(self):
        active = self.make_job(self.company)
        draft = self.make_job(self.company, title="Draft role", status=Job.STATUS_DRAFT)

        self.company.refresh_from_db()
        self.assertEqual(self.company.total_jobs_posted, 2)
        self.assertEqual(self.company.active_jobs, 1)
        self.assertIsNotNone(active.posted_at)
        self.assertIsNone(draft.posted_at)

    def test_new_job_must_start_draft_or_active(self):
        with self.assertRaises(InvalidTransition):
            self.make_job(self.company, status=Job.STATUS_CLOSED)

    def test_status_changes_keep_active_jobs_in_sync(self):
        job = self.make_job(self.company, status=Job.STATUS_DRAFT)
        sequence = [
            Job.STATUS_ACTIVE,
            Job.STATUS_PAUSED,
            Job.STATUS_ACTIVE,
            Job.STATUS_ACTIVE,
            Job.STATUS_CLOSED,
            Job.STATUS_ACTIVE,
            Job.STATUS_FILLED,
        ]
        for value in sequence:
            job = services.change_job_status(job=job, new_status=value)
            self.assertActiveJobsInSync()

        self.assertEqual(job.status, Job.STATUS_FILLED)
        self.assertIsNotNone(job.closed_at)
        self.assertEqual(stats.reconcile_company_active_jobs(self.company), 0)

    def test_same_status_is_a_no_op(self):
        job = self.make_job(self.company)
        services.change_job_status(job=job, new_status=Job.STATUS_ACTIVE)
        services.change_job_status(job=job, new_status=Job.STATUS_ACTIVE)
        self.company.refresh_from_db()
        self.assertEqual(self.company.active_jobs, 1)

    def test_activation_sets_posted_at_once(self):
        job = self.make_job(self.company, status=Job.STATUS_DRAFT)
        job = services.change_job_status(job=job, new_status=Job.STATUS_ACTIVE)
        first_posted = job.posted_at
        services.change_job_status(job=job, new_status=Job.STATUS_PAUSED)
        job = services.change_job_status(job=job, new_status=Job.STATUS_ACTIVE)
        self.assertEqual(job.posted_at, first_posted)

    def test_posted_job_cannot_return_to_draft(self):
        job = self.make_job(self.company)
        with self.assertRaises(InvalidTransition):
            services.change_job_status(job=job, new_status=Job.STATUS_DRAFT)

    def test_other_company_cannot_change_status(self):
        job = self.make_job(self.company)
        with self.assertRaises(Unauthorized):
            services.change_job_status(
                job=job,
                new_status=Job.STATUS_PAUSED,
                actor=self.company_actor(self.other_company),
            )

    def test_referral_fee_locked_after_posting(self):
        job = self.make_job(self.company)
        with self.assertRaises(InvalidTransition):
            services.update_job(job=job, actor_company=self.company, referral_fee=Decimal("2000.00"))
        with self.assertRaises(InvalidTransition):
            services.update_job(job=job, actor_company=self.company, referral_fee_currency="USD")

        updated = services.update_job(
            job=job,
            actor_company=self.company,
            title="Senior Backend Engineer",
            referral_fee=Decimal("1000.00"),
        )
        self.assertEqual(updated.title, "Senior Backend Engineer")

    def test_referral_fee_editable_while_draft(self):
        job = self.make_job(self.company, status=Job.STATUS_DRAFT)
        updated = services.update_job(job=job, actor_company=self.company, referral_fee=Decimal("750.00"))
        self.assertEqual(updated.referral_fee, Decimal("750.00"))

    def test_update_requires_owner(self):
        job = self.make_job(self.company)
        with self.assertRaises(Unauthorized):
            services.update_job(job=job, actor_company=self.other_company, title="Hijacked")

    def test_delete_job_without_applications(self):
        job = self.make_job(self.company)
        services.delete_job(job=job, actor_company=self.company)

        self.assertFalse(Job.objects.filter(pk=job.pk).exists())
        self.company.refresh_from_db()
        self.assertEqual(self.company.total_jobs_posted, 0)
        self.assertEqual(self.company.active_jobs, 0)

    def test_delete_job_with_applications_is_refused(self):
        job = self.make_job(self.company)
        services.submit_application(job=job, applicant=self.make_seeker("bob@example.com"))
        with self.assertRaises(InvalidTransition):
            services.delete_job(job=job, actor_company=self.company)
        self.assertTrue(Job.objects.filter(pk=job.pk).exists())

    def test_record_view_counts_referral_views(self):
        job = self.make_job(self.company)
        referrer = self.make_seeker("john@example.com", first_name="John")

        self.assertFalse(services.record_job_view(job=job))
        self.assertTrue(services.record_job_view(job=job, referral_code=referrer.referral_code))
        self.assertFalse(services.record_job_view(job=job, referral_code="REF-NOPE-000000"))

        job.refresh_from_db()
        self.assertEqual(job.views, 3)
        self.assertEqual(job.referral_views, 1)

    def test_share_job_returns_referral_link(self):
        job = self.make_job(self.company)
        referrer = self.make_seeker("john@example.com", first_name="John")

        with self.settings(FRONTEND_URL="https://jobs.example.com/"):
            link = services.share_job(job=job, user=referrer)

        self.assertEqual(link, f"https://jobs.example.com/jobs/{job.pk}?ref={referrer.referral_code}")
        job.refresh_from_db()
        self.assertEqual(job.referrals, 1)

    def test_share_requires_active_job_and_job_seeker(self):
        job = self.make_job(self.company, status=Job.STATUS_DRAFT)
        referrer = self.make_seeker("john@example.com")
        with self.assertRaises(JobNotAcceptingApplications):
            services.share_job(job=job, user=referrer)
        with self.assertRaises(Unauthorized):
            services.share_job(job=job, user=self.company.user)


class ExpiredJobSweepTests(RecruitmentFixturesMixin, TestCase):
    def setUp(self):
        self.company = self.make_company()
        self.now = timezone.now()
        for index in range(4):
            self.make_job(self.company, title=f"Open {index}", application_deadline=self.now + timedelta(days=7))
        self.expired = self.make_job(self.company, title="Expiring", application_deadline=self.now + timedelta(days=1))

    def test_sweep_closes_expired_jobs(self):
        self.company.refresh_from_db()
        self.assertEqual(self.company.active_jobs, 5)

        closed = services.close_expired_jobs(now=self.now + timedelta(days=2))

        self.assertEqual(closed, 1)
        self.expired.refresh_from_db()
        self.company.refresh_from_db()
        self.assertEqual(self.expired.status, Job.STATUS_CLOSED)
        self.assertIsNotNone(self.expired.closed_at)
        self.assertEqual(self.company.active_jobs, 4)

    def test_sweep_is_safe_to_repeat(self):
        later = self.now + timedelta(days=2)
        services.close_expired_jobs(now=later)
        self.assertEqual(services.close_expired_jobs(now=later), 0)
        self.company.refresh_from_db()
        self.assertEqual(self.company.active_jobs, 4)

    def test_sweep_ignores_paused_jobs(self):
        services.change_job_status(job=self.expired, new_status=Job.STATUS_PAUSED)
        self.assertEqual(services.close_expired_jobs(now=self.now + timedelta(days=2)), 0)
        self.expired.refresh_from_db()
        self.assertEqual(self.expired.status, Job.STATUS_PAUSED)

    def test_management_command(self):
        Job.objects.filter(pk=self.expired.pk).update(application_deadline=self.now - timedelta(minutes=5))
        out = StringIO()
        call_command("close_expired_jobs", stdout=out)

        self.assertIn("Total closed: 1", out.getvalue())
        self.company.refresh_from_db()
        self.assertEqual(self.company.active_jobs, 4)

    def test_management_command_dry_run(self):
        out = StringIO()
        later = (self.now + timedelta(days=2)).isoformat()
        call_command("close_expired_jobs", "--dry-run", f"--now={later}", stdout=out)

        self.assertIn("Jobs to close: 1", out.getvalue())
        self.expired.refresh_from_db()
        self.assertEqual(self.expired.status, Job.STATUS_ACTIVE)


class RecruitmentApiTests(RecruitmentFixturesMixin, APITestCase):
    def setUp(self):
        self.company = self.make_company()
        self.job = self.make_job(self.company)
        self.referrer = self.make_seeker("john@example.com", first_name="John")
        self.applicant = self.make_seeker("bob@example.com", first_name="Bob")
        self.staff = self.make_seeker("ops@example.com", first_name="Ops", is_staff=True)

    def submit(self, user=None, **payload):
        self.client.force_authenticate(user or self.applicant)
        payload.setdefault("job_id", self.job.pk)
        return self.client.post(reverse("recruitment-application-list"), payload, format="json")

    def test_job_list_shows_active_jobs(self):
        self.make_job(self.company, title="Hidden draft", status=Job.STATUS_DRAFT)
        resp = self.client.get(reverse("recruitment-job-list"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        titles = [item["title"] for item in resp.data["results"]]
        self.assertEqual(titles, ["Backend Engineer"])

    def test_company_creates_job(self):
        self.client.force_authenticate(self.company.user)
        resp = self.client.post(
            reverse("recruitment-job-list"),
            {"title": "Data Engineer", "description": "Pipelines", "status": "active", "referral_fee": "500.00"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["status"], Job.STATUS_ACTIVE)
        self.company.refresh_from_db()
        self.assertEqual(self.company.active_jobs, 2)

    def test_job_seeker_cannot_create_job(self):
        self.client.force_authenticate(self.applicant)
        resp = self.client.post(
            reverse("recruitment-job-list"),
            {"title": "Nope", "description": "Nope"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_job_detail_records_referral_view(self):
        url = reverse("recruitment-job-detail", args=[self.job.pk])
        resp = self.client.get(url, {"ref": self.referrer.referral_code})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stats"]["views"], 1)
        self.assertEqual(resp.data["stats"]["referral_views"], 1)

    def test_owner_viewing_job_is_not_counted(self):
        self.client.force_authenticate(self.company.user)
        resp = self.client.get(reverse("recruitment-job-detail", args=[self.job.pk]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stats"]["views"], 0)
        self.job.refresh_from_db()
        self.assertEqual(self.job.views, 0)

    def test_job_filters_cover_active_jobs(self):
        self.make_job(self.company, title="Designer", category="Design", location_city="Leeds", work_type="remote")
        self.make_job(self.company, title="Counsel", category="Legal", location_city="York", status=Job.STATUS_DRAFT)

        resp = self.client.get(reverse("recruitment-job-filters"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["categories"], ["Design", "Other"])
        self.assertEqual(resp.data["locations"], ["Leeds"])
        self.assertEqual(resp.data["work_types"], ["on-site", "remote"])
        self.assertEqual(resp.data["job_types"], ["full-time"])
        self.assertEqual(resp.data["experience_levels"], ["mid"])

    def test_job_stats_for_owning_company(self):
        Job.objects.filter(pk=self.job.pk).update(views=8, referral_views=2, applications=4, referral_applications=1)
        url = reverse("recruitment-job-stats", args=[self.job.pk])

        self.client.force_authenticate(self.company.user)
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["job_title"], "Backend Engineer")
        self.assertEqual(resp.data["stats"]["referral_rate"], 25)
        self.assertEqual(resp.data["stats"]["application_rate"], 50)
        self.assertEqual(resp.data["stats"]["referral_application_rate"], 50)

        other = self.make_company(email="hr@other.test", name="Other")
        self.client.force_authenticate(other.user)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(self.applicant)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

    def test_job_stats_without_views(self):
        performance = stats.job_performance(self.job)
        self.assertEqual(performance["referral_rate"], 0)
        self.assertEqual(performance["application_rate"], 0)
        self.assertEqual(performance["referral_application_rate"], 0)

    def test_company_feedback_recorded_with_status(self):
        application = services.submit_application(job=self.job, applicant=self.applicant)
        self.client.force_authenticate(self.company.user)
        url = reverse("recruitment-application-change-status", args=[application.pk])

        resp = self.client.patch(
            url,
            {
                "status": "shortlisted",
                "rating": 4,
                "feedback": {
                    "notes": "Strong systems design",
                    "strengths": ["Django"],
                    "concerns": ["Notice period"],
                    "recommendation": "interview",
                },
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        feedback = resp.data["company_feedback"]
        self.assertEqual(feedback["rating"], 4)
        self.assertEqual(feedback["notes"], "Strong systems design")
        self.assertEqual(feedback["concerns"], ["Notice period"])
        self.assertEqual(feedback["recommendation"], "interview")

        self.client.force_authenticate(self.applicant)
        resp = self.client.get(reverse("recruitment-application-detail", args=[application.pk]))
        self.assertEqual(resp.data["company_feedback"]["rating"], 4)
        self.assertNotIn("notes", resp.data["company_feedback"])

    def test_feedback_rating_must_be_in_range(self):
        application = services.submit_application(job=self.job, applicant=self.applicant)
        self.client.force_authenticate(self.company.user)
        url = reverse("recruitment-application-change-status", args=[application.pk])

        resp = self.client.patch(url, {"status": "reviewing", "rating": 6}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        application.refresh_from_db()
        self.assertEqual(application.status, Application.STATUS_PENDING)

    def test_duplicate_payment_reference_rejected(self):
        first = services.submit_application(
            job=self.job,
            applicant=self.applicant,
            referral_code=self.referrer.referral_code,
        )
        self.advance(first, Application.STATUS_HIRED)
        payments.mark_payment_paid(first, reference="GW-1")

        carol = self.make_seeker("carol@example.com", first_name="Carol")
        second = services.submit_application(job=self.job, applicant=carol, referral_code=self.referrer.referral_code)
        self.advance(second, Application.STATUS_HIRED)

        self.client.force_authenticate(self.staff)
        url = reverse("recruitment-application-payment", args=[second.pk])
        resp = self.client.patch(url, {"status": "paid", "reference": "GW-1"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["success"], False)
        second.refresh_from_db()
        self.assertEqual(second.payment_status, Application.PAYMENT_PENDING)

    def test_job_status_endpoint(self):
        self.client.force_authenticate(self.company.user)
        url = reverse("recruitment-job-change-status", args=[self.job.pk])
        resp = self.client.patch(url, {"status": "paused"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], Job.STATUS_PAUSED)
        self.company.refresh_from_db()
        self.assertEqual(self.company.active_jobs, 0)

    def test_share_endpoint(self):
        self.client.force_authenticate(self.referrer)
        resp = self.client.post(reverse("recruitment-job-share", args=[self.job.pk]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn(f"ref={self.referrer.referral_code}", resp.data["referral_link"])

    def test_submit_application(self):
        resp = self.submit(referral_code=self.referrer.referral_code, cover_letter="Keen!")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(resp.data["is_referral"])
        self.assertEqual(resp.data["referred_by"], self.referrer.pk)
        self.assertEqual(resp.data["status"], Application.STATUS_PENDING)

    def test_duplicate_submit_returns_conflict(self):
        self.submit()
        resp = self.submit()
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(resp.data["success"])
        self.assertEqual(resp.data["error"], "DuplicateApplication")

    def test_submit_to_closed_job(self):
        services.change_job_status(job=self.job, new_status=Job.STATUS_CLOSED)
        resp = self.submit()
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "JobNotAcceptingApplications")

    def test_company_cannot_submit(self):
        resp = self.submit(user=self.company.user)
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_company_moves_application(self):
        application = services.submit_application(job=self.job, applicant=self.applicant)
        self.client.force_authenticate(self.company.user)
        url = reverse("recruitment-application-change-status", args=[application.pk])

        resp = self.client.patch(url, {"status": "reviewing", "note": "Looks good"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], Application.STATUS_REVIEWING)
        self.assertEqual(resp.data["status_history"][-1]["note"], "Looks good")

        resp = self.client.patch(url, {"status": "pending"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["error"], "InvalidTransition")

    def test_other_company_cannot_see_application(self):
        application = services.submit_application(job=self.job, applicant=self.applicant)
        other = self.make_company(email="hr@other.test", name="Other")
        self.client.force_authenticate(other.user)
        url = reverse("recruitment-application-change-status", args=[application.pk])
        resp = self.client.patch(url, {"status": "reviewing"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_applicant_withdraws(self):
        application = services.submit_application(job=self.job, applicant=self.applicant)
        self.client.force_authenticate(self.applicant)
        url = reverse("recruitment-application-withdraw", args=[application.pk])

        resp = self.client.post(url, {"reason": "Changed my mind"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], Application.STATUS_WITHDRAWN)

        resp = self.client.post(url, {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_schedule_interview_endpoint(self):
        application = services.submit_application(job=self.job, applicant=self.applicant)
        self.client.force_authenticate(self.company.user)
        resp = self.client.post(
            reverse("recruitment-application-interviews", args=[application.pk]),
            {"interview_type": "phone", "scheduled_at": (timezone.now() + timedelta(days=1)).isoformat()},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        application.refresh_from_db()
        self.assertEqual(application.status, Application.STATUS_INTERVIEWING)

    def test_applications_list_is_scoped(self):
        services.submit_application(job=self.job, applicant=self.applicant)
        services.submit_application(job=self.job, applicant=self.referrer)

        self.client.force_authenticate(self.applicant)
        resp = self.client.get(reverse("recruitment-application-list"))
        self.assertEqual(resp.data["count"], 1)

        self.client.force_authenticate(self.company.user)
        resp = self.client.get(reverse("recruitment-application-list"))
        self.assertEqual(resp.data["count"], 2)

    def test_referrals_endpoint(self):
        application = services.submit_application(
            job=self.job,
            applicant=self.applicant,
            referral_code=self.referrer.referral_code,
        )
        self.advance(application, Application.STATUS_HIRED)

        self.client.force_authenticate(self.referrer)
        resp = self.client.get(reverse("recruitment-application-referrals"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["summary"]["successful_referrals"], 1)
        self.assertEqual(resp.data["summary"]["pending_earnings"], Decimal("1000.00"))
        self.assertEqual(len(resp.data["applications"]), 1)
        self.assertEqual(resp.data["applications"][0]["referral_payment"]["status"], Application.PAYMENT_PENDING)

    def test_staff_records_payout(self):
        application = services.submit_application(
            job=self.job,
            applicant=self.applicant,
            referral_code=self.referrer.referral_code,
        )
        self.advance(application, Application.STATUS_HIRED)
        url = reverse("recruitment-application-payment", args=[application.pk])

        self.client.force_authenticate(self.referrer)
        resp = self.client.patch(url, {"status": "paid"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.staff)
        resp = self.client.patch(url, {"status": "paid", "reference": "GW-1"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["referral_payment"]["status"], Application.PAYMENT_PAID)

        self.referrer.refresh_from_db()
        self.assertEqual(self.referrer.paid_earnings, Decimal("1000.00"))
        self.assertEqual(self.referrer.pending_earnings, Decimal("0.00"))
