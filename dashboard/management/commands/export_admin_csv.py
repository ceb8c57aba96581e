"""
Management command to write admin CSV exports to disk.

Uses the same filters and fixed columns as the dashboard download buttons.

Usage:
    python manage.py export_admin_csv payments --status pending --output-dir exports/
    python manage.py export_admin_csv users --role tutor --start-date 2026-01-01
"""
import datetime
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from dashboard.exports import EXPORTS, export_filename, export_rows, write_csv


def _date(value):
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise CommandError(f"Invalid date '{value}', expected YYYY-MM-DD")


class Command(BaseCommand):
    help = 'Export users, enrollments or payments to CSV'

    def add_arguments(self, parser):
        parser.add_argument('kind', choices=sorted(EXPORTS), help='Which list to export')
        parser.add_argument('--output-dir', default='.', help='Directory for the CSV file (default: .)')
        parser.add_argument('--role', help='users: admin, parent or tutor')
        parser.add_argument('--search', help='users: name or email contains')
        parser.add_argument('--status', help='enrollments/payments: status filter')
        parser.add_argument('--payment-status', help='enrollments: payment status filter')
        parser.add_argument('--start-date', help='Created on or after (YYYY-MM-DD)')
        parser.add_argument('--end-date', help='Created on or before (YYYY-MM-DD)')

    def handle(self, *args, **options):
        kind = options['kind']
        filters = {
            'role': options['role'],
            'search': options['search'],
            'status': options['status'],
            'payment_status': options['payment_status'],
            'start_date': _date(options['start_date']) if options['start_date'] else None,
            'end_date': _date(options['end_date']) if options['end_date'] else None,
        }
        filters = {key: value for key, value in filters.items() if value}

        output_dir = Path(options['output_dir'])
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / export_filename(kind, timezone.localdate())

        rows = export_rows(kind, filters)
        with path.open('w', newline='', encoding='utf-8') as handle:
            count = write_csv(handle, EXPORTS[kind][0], rows)

        self.stdout.write(self.style.SUCCESS(f"Exported {count} {kind} row(s) to {path}"))
