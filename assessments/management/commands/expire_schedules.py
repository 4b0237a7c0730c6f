from django.core.management.base import BaseCommand

from assessments.sweeper import sweep_expired


class Command(BaseCommand):
    help = 'Expires every scheduled exam whose window has closed (safe to run repeatedly, e.g. from cron)'

    def add_arguments(self, parser):
        parser.add_argument('--exam', type=int, help='Only sweep schedules of this exam')
        parser.add_argument('--student', type=int, help='Only sweep schedules of this student')

    def handle(self, *args, **options):
        count = sweep_expired(exam_id=options.get('exam'), student_id=options.get('student'))
        self.stdout.write(self.style.SUCCESS(f"Expired {count} schedule(s)"))
