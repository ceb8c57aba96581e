from decimal import Decimal
from types import SimpleNamespace

import pytest

from dashboard.preferences import (
    PreferenceEditor, PreferenceValidationError, RATE_REQUIRED_MESSAGE,
)
from profiles.validators import parse_rate


def course(id, title, subject, grade='Grade 8'):
    return SimpleNamespace(id=id, title=title, subject=subject, grade_level=grade)


def stored(course_id, rate, status='approved'):
    return SimpleNamespace(course_id=course_id, hourly_rate=Decimal(rate), approval_status=status)


COURSES = [
    course(1, 'Algebra I', 'Math'),
    course(2, 'Geometry', 'Math', 'Grade 9'),
    course(3, 'Intro Physics', 'Science', 'Grade 10'),
]


@pytest.mark.parametrize("raw", ["", "   ", "0", "-5", "abc", "NaN", "Infinity", None])
def test_parse_rate_rejects_unusable_values(raw):
    assert parse_rate(raw) is None


def test_parse_rate_accepts_positive_decimals():
    assert parse_rate(" 45.50 ") == Decimal("45.50")


def test_editor_seeds_selected_drafts_from_stored_preferences():
    editor = PreferenceEditor(COURSES, [stored(2, '30.00', 'pending'), stored(99, '10')])
    assert editor.drafts[2].selected
    assert editor.drafts[2].hourly_rate == '30.00'
    assert editor.drafts[2].approval_status == 'pending'
    assert not editor.drafts[1].selected
    # Preferences for courses no longer offered are not seeded
    assert 99 not in editor.drafts


def test_nothing_selected_submits_empty_list():
    editor = PreferenceEditor(COURSES)
    assert editor.submission() == []


def test_selected_course_with_empty_rate_fails_validation():
    editor = PreferenceEditor(COURSES)
    editor.toggle(1, True)
    with pytest.raises(PreferenceValidationError) as excinfo:
        editor.submission()
    assert excinfo.value.course_ids == [1]
    assert str(excinfo.value) == RATE_REQUIRED_MESSAGE


def test_deselect_clears_rate():
    editor = PreferenceEditor(COURSES, [stored(1, '40')])
    editor.toggle(1, False)
    assert editor.drafts[1].hourly_rate == ''
    editor.toggle(1, True)
    assert editor.drafts[1].hourly_rate == ''


def test_set_rate_selects_a_fresh_course():
    editor = PreferenceEditor([])
    editor.set_rate(7, '25')
    assert editor.drafts[7].selected
    assert editor.submission() == [{'course_id': 7, 'hourly_rate': Decimal('25')}]


def test_apply_post_reads_checkboxes_and_rates():
    editor = PreferenceEditor(COURSES, [stored(1, '40'), stored(3, '55')])
    editor.apply_post({
        'course-1-selected': 'on',
        'course-1-rate': '45',
        'course-2-selected': 'on',
        'course-2-rate': '30',
        # course 3 unchecked
        'course-3-rate': '55',
    })
    assert editor.submission() == [
        {'course_id': 1, 'hourly_rate': Decimal('45')},
        {'course_id': 2, 'hourly_rate': Decimal('30')},
    ]
    assert editor.drafts[3].hourly_rate == ''


def test_apply_post_replaces_stale_rate_with_blank():
    editor = PreferenceEditor(COURSES, [stored(1, '40')])
    editor.apply_post({'course-1-selected': 'on', 'course-1-rate': ''})
    assert editor.invalid_course_ids() == [1]


def test_rows_filter_by_search_subject_and_selection():
    editor = PreferenceEditor(COURSES, [stored(3, '55')])
    assert [c.id for c, _ in editor.rows(search='geo')] == [2]
    assert [c.id for c, _ in editor.rows(subject='Math')] == [1, 2]
    assert [c.id for c, _ in editor.rows(only_selected=True)] == [3]
    assert [c.id for c, _ in editor.rows(search='grade 10')] == [3]
    assert editor.subjects() == ['Math', 'Science']
