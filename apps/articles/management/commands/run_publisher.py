"""
Management command for running scheduled publishing in-process.

Provides a fallback when Celery beat is not available.

Usage:
    python manage.py run_publisher
    python manage.py run_publisher --once
    python manage.py run_publisher --interval 30
"""

import json
import signal
import threading

from django.core.management.base import BaseCommand

from apps.articles.publishing import PublishingScheduler


class Command(BaseCommand):
    help = 'Publish scheduled articles whose publish time has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--once',
            action='store_true',
            help='Run a single tick (with startup retries) and exit'
        )
        parser.add_argument(
            '--interval',
            type=float,
            default=None,
            help='Seconds between ticks (default: PUBLISHING_TICK_INTERVAL)'
        )

    def handle(self, *args, **options):
        scheduler = PublishingScheduler(interval=options['interval'])

        if options['once']:
            summary = scheduler.run_with_retry()
            if summary is None:
                self.stderr.write(self.style.ERROR('Publishing run failed permanently'))
                return
            self.stdout.write(json.dumps(summary.to_dict(), indent=2))
            self.stdout.write(self.style.SUCCESS(f'Published {summary.promoted} scheduled article(s)'))
            return

        stopped = threading.Event()

        def request_stop(signum, frame):
            self.stdout.write('Stopping publisher after the current tick...')
            stopped.set()

        signal.signal(signal.SIGINT, request_stop)
        signal.signal(signal.SIGTERM, request_stop)

        scheduler.start()
        self.stdout.write(self.style.SUCCESS(
            f'Publisher running every {scheduler.interval}s. Press Ctrl+C to stop.'
        ))
        while not stopped.wait(1):
            if not scheduler.is_running:
                self.stderr.write(self.style.ERROR('Publisher thread exited unexpectedly'))
                break
        scheduler.stop()
        self.stdout.write(self.style.SUCCESS('Publisher stopped'))
