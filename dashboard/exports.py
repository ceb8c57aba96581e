"""
CSV exports for the admin lists.

Column order and header names are fixed per export kind. Rows are the
serialized dicts from dashboard.queries; each column maps a header to a key.
"""
import csv
import io
import logging

from django.http import HttpResponse
from django.utils import timezone

from . import queries

logger = logging.getLogger(__name__)


USER_COLUMNS = (
    ('id', 'id'),
    ('name', 'name'),
    ('email', 'email'),
    ('role', 'role'),
    ('createdAt', 'created_at'),
)

ENROLLMENT_COLUMNS = (
    ('id', 'id'),
    ('courseName', 'course_name'),
    ('studentName', 'student_name'),
    ('parentName', 'parent_name'),
    ('parentEmail', 'parent_email'),
    ('tutorName', 'tutor_name'),
    ('status', 'status'),
    ('paymentStatus', 'payment_status'),
    ('paymentPlan', 'payment_plan'),
    ('createdAt', 'created_at'),
)

PAYMENT_COLUMNS = (
    ('id', 'id'),
    ('amount', 'amount'),
    ('currency', 'currency'),
    ('status', 'status'),
    ('paymentType', 'payment_type'),
    ('courseName', 'course_name'),
    ('studentName', 'student_name'),
    ('parentName', 'parent_name'),
    ('parentEmail', 'parent_email'),
    ('tutorName', 'tutor_name'),
    ('stripePaymentIntentId', 'stripe_payment_intent_id'),
    ('createdAt', 'created_at'),
)

# kind -> (columns, queryset builder, row serializer)
EXPORTS = {
    'users': (USER_COLUMNS, queries.filter_users, queries.serialize_user),
    'enrollments': (ENROLLMENT_COLUMNS, queries.filter_enrollments, queries.serialize_enrollment),
    'payments': (PAYMENT_COLUMNS, queries.filter_payments, queries.serialize_payment),
}


def export_filename(kind, today=None):
    """e.g. payments-export-2026-01-31.csv"""
    today = today or timezone.localdate()
    return f"{kind}-export-{today.isoformat()}.csv"


def write_csv(stream, columns, rows):
    """
    Write a header row plus one line per row.
    Missing values become empty cells; quoting follows the csv module.
    """
    writer = csv.writer(stream, lineterminator='\n')
    writer.writerow([header for header, _ in columns])
    count = 0
    for row in rows:
        writer.writerow(['' if row.get(key) is None else row.get(key) for _, key in columns])
        count += 1
    return count


def render_csv(columns, rows):
    buffer = io.StringIO()
    write_csv(buffer, columns, rows)
    return buffer.getvalue()


def export_rows(kind, filters):
    """Serialized rows for an export kind, ignoring pagination."""
    if kind not in EXPORTS:
        raise KeyError(f"Unknown export: {kind}")
    _, build_queryset, serialize = EXPORTS[kind]
    return [serialize(obj) for obj in build_queryset(filters)]


def csv_response(kind, rows, today=None):
    """
    Build the attachment response, or None when there is no row source.
    An empty list still produces a header-only file.
    """
    if rows is None:
        return None
    columns = EXPORTS[kind][0]
    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{export_filename(kind, today)}"'
    count = write_csv(response, columns, rows)
    logger.info("Exported %d %s row(s)", count, kind)
    return response
