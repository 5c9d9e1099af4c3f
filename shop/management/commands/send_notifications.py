"""
Management command to deliver pending order notification e-mails.
"""
import time

from django.core.management.base import BaseCommand

from shop.services.notifications import NotificationWorker


class Command(BaseCommand):
    help = 'Send pending order notification e-mails from the outbox'

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=100,
            help='Maximum number of events to process in one run',
        )
        parser.add_argument(
            '--loop',
            action='store_true',
            help='Run in loop (for production)',
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=3,
            help='Interval between loops in seconds',
        )

    def handle(self, *args, **options):
        limit = options['limit']
        interval = options['interval']

        worker = NotificationWorker()

        if not options['loop']:
            sent = worker.process_pending(limit=limit)
            self.stdout.write(self.style.SUCCESS(f'Sent {sent} notifications'))
            return

        self.stdout.write(f'Starting notification worker in loop mode (interval: {interval}s)')
        while True:
            try:
                sent = worker.process_pending(limit=limit)
                if sent > 0:
                    self.stdout.write(self.style.SUCCESS(f'Sent {sent} notifications'))
                time.sleep(interval)
            except KeyboardInterrupt:
                self.stdout.write(self.style.WARNING('Stopped by user'))
                break
