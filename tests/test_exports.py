import datetime

import pytest

from dashboard.exports import (
    PAYMENT_COLUMNS, USER_COLUMNS, csv_response, export_filename, export_rows, render_csv,
)
from tutoring.models import Payment
from .conftest import aware


def test_filename_uses_kind_and_date():
    assert export_filename('payments', today=datetime.date(2026, 3, 9)) == 'payments-export-2026-03-09.csv'


def test_empty_rows_give_header_only():
    assert render_csv(USER_COLUMNS, []) == 'id,name,email,role,createdAt\n'


def test_values_with_commas_and_quotes_are_quoted():
    rows = [{'id': 1, 'name': 'Lee, "Sam"', 'email': 'sam@example.com', 'role': 'parent', 'created_at': None}]
    body = render_csv(USER_COLUMNS, rows)
    assert body.splitlines()[1] == '1,"Lee, ""Sam""",sam@example.com,parent,'


def test_payment_header_order_is_fixed():
    header = render_csv(PAYMENT_COLUMNS, []).strip()
    assert header == (
        'id,amount,currency,status,paymentType,courseName,studentName,'
        'parentName,parentEmail,tutorName,stripePaymentIntentId,createdAt'
    )


def test_no_row_source_means_no_response():
    assert csv_response('users', None) is None


def test_response_is_an_attachment():
    response = csv_response('users', [], today=datetime.date(2026, 1, 31))
    assert response['Content-Type'].startswith('text/csv')
    assert response['Content-Disposition'] == 'attachment; filename="users-export-2026-01-31.csv"'
    assert response.content.decode() == 'id,name,email,role,createdAt\n'


@pytest.mark.django_db
def test_export_rows_apply_filters_without_pagination(make_payment, settings):
    settings.DASHBOARD_ITEMS_PER_PAGE = 1
    make_payment('100', Payment.Status.COMPLETED, created_at=aware(2026, 1, 5, 12))
    make_payment('50', Payment.Status.COMPLETED, created_at=aware(2026, 1, 20, 12))
    make_payment('75', Payment.Status.PENDING, created_at=aware(2026, 1, 21, 12))

    rows = export_rows('payments', {'status': Payment.Status.COMPLETED})
    assert [row['amount'] for row in rows] == ['50.00', '100.00']
    assert rows[0]['course_name'] == 'Algebra I'
    assert rows[0]['student_name'] == 'Sam Parent'
    assert rows[0]['stripe_payment_intent_id'] is None


def test_unknown_export_kind():
    with pytest.raises(KeyError):
        export_rows('sessions', {})
