from django.core.management.base import BaseCommand
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from recruitment.models import Job
from recruitment.services import close_expired_jobs


class Command(BaseCommand):
    help = 'Closes active jobs whose application deadline has passed.'

    def add_arguments(self, parser):
        parser.add_argument('--now', help='ISO datetime to sweep against (defaults to the current time).')
        parser.add_argument('--dry-run', action='store_true', help='List the jobs that would be closed.')

    def handle(self, *args, **options):
        now = timezone.now()
        if options.get('now'):
            now = parse_datetime(options['now'])
            if now is None:
                self.stdout.write(self.style.ERROR(f"Invalid --now value: {options['now']}"))
                return
            if timezone.is_naive(now):
                now = timezone.make_aware(now)

        self.stdout.write("Starting expired job sweep...")

        if options.get('dry_run'):
            expired = Job.objects.filter(
                status=Job.STATUS_ACTIVE,
                application_deadline__isnull=False,
                application_deadline__lt=now,
            )
            for job in expired:
                self.stdout.write(f"Would close job {job.pk} ({job.title}), deadline {job.application_deadline:%Y-%m-%d %H:%M}")
            self.stdout.write(self.style.SUCCESS(f"Dry run complete. Jobs to close: {expired.count()}"))
            return

        total_closed = close_expired_jobs(now=now)
        self.stdout.write(self.style.SUCCESS(f"Expired job sweep complete. Total closed: {total_closed}"))
