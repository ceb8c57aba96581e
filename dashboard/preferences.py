"""
Course-preference editor for the tutor dashboard.

Drafts are seeded from stored preferences, updated from the submitted
form, and only turned into a save payload when every selected course has
a usable rate.
"""
from profiles.validators import parse_rate

RATE_REQUIRED_MESSAGE = "Please enter an hourly rate greater than 0 for selected courses."


class PreferenceValidationError(Exception):
    """Raised when a selected course has a missing or non-positive rate."""

    def __init__(self, course_ids):
        super().__init__(RATE_REQUIRED_MESSAGE)
        self.course_ids = course_ids


class PreferenceDraft:
    """Editable state of one course row."""

    def __init__(self, course_id, selected=False, hourly_rate='', approval_status=None):
        self.course_id = course_id
        self.selected = selected
        self.hourly_rate = hourly_rate
        self.approval_status = approval_status

    def __eq__(self, other):
        if not isinstance(other, PreferenceDraft):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        return (
            f"PreferenceDraft(course_id={self.course_id}, selected={self.selected}, "
            f"hourly_rate={self.hourly_rate!r}, approval_status={self.approval_status!r})"
        )


class PreferenceEditor:
    """
    Drafts for every available course, keyed by course id.

    Usage:
        editor = PreferenceEditor(courses, tutor.course_preferences.all())
        editor.apply_post(request.POST)
        payload = editor.submission()  # may raise PreferenceValidationError
    """

    def __init__(self, courses, preferences=()):
        self.courses = list(courses)
        self.drafts = {course.id: PreferenceDraft(course.id) for course in self.courses}
        for pref in preferences:
            if pref.course_id not in self.drafts:
                continue
            self.drafts[pref.course_id] = PreferenceDraft(
                pref.course_id,
                selected=True,
                hourly_rate=str(pref.hourly_rate),
                approval_status=pref.approval_status,
            )

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def toggle(self, course_id, selected):
        """Deselecting clears the draft rate; selecting keeps it."""
        draft = self.drafts.setdefault(course_id, PreferenceDraft(course_id))
        draft.selected = bool(selected)
        if not draft.selected:
            draft.hourly_rate = ''

    def set_rate(self, course_id, rate):
        """Typing a rate for a course without a draft selects it."""
        draft = self.drafts.get(course_id)
        if draft is None:
            draft = self.drafts[course_id] = PreferenceDraft(course_id, selected=True)
        draft.hourly_rate = (rate or '').strip()

    def apply_post(self, data):
        """
        Read `course-<id>-selected` checkboxes and `course-<id>-rate` inputs.
        Courses absent from the form end up deselected.
        """
        for course_id in list(self.drafts):
            selected = f"course-{course_id}-selected" in data
            rate = data.get(f"course-{course_id}-rate", '')
            if selected:
                self.set_rate(course_id, rate)
            self.toggle(course_id, selected)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def selected_drafts(self):
        return [draft for draft in self.drafts.values() if draft.selected]

    def invalid_course_ids(self):
        return [d.course_id for d in self.selected_drafts() if parse_rate(d.hourly_rate) is None]

    def submission(self):
        """
        Payload for tutoring.services.save_tutor_preferences.
        Nothing selected yields an empty list without rate checks.
        """
        invalid = self.invalid_course_ids()
        if invalid:
            raise PreferenceValidationError(invalid)
        return [
            {'course_id': draft.course_id, 'hourly_rate': parse_rate(draft.hourly_rate)}
            for draft in self.selected_drafts()
        ]

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def subjects(self):
        return sorted({course.subject for course in self.courses if course.subject})

    def rows(self, search='', subject='', only_selected=False):
        """(course, draft) pairs matching the editor's course filters."""
        needle = (search or '').strip().lower()
        rows = []
        for course in self.courses:
            draft = self.drafts[course.id]
            if only_selected and not draft.selected:
                continue
            if subject and course.subject != subject:
                continue
            if needle:
                haystack = ' '.join([course.title, course.subject or '', course.grade_level or '']).lower()
                if needle not in haystack:
                    continue
            rows.append((course, draft))
        return rows
