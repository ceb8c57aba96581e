import pytest
from django.contrib.auth.models import User

from dashboard.models import DashboardState
from dashboard.notifications import DatabaseStore, NoteAlertTracker, HiddenHistory
from profiles.models import UserProfile

from .conftest import make_user

pytestmark = pytest.mark.django_db


@pytest.fixture
def store(parent):
    return DatabaseStore(parent.id)


def test_alert_fires_once_per_distinct_feedback(store):
    first = NoteAlertTracker(store).acknowledge([(1, "Great progress")])
    assert first == {1: NoteAlertTracker.SHOWN_ONCE}

    # A later page load sees the same text as stable
    again = NoteAlertTracker(store).acknowledge([(1, "Great progress")])
    assert again == {1: NoteAlertTracker.STABLE}


def test_changed_feedback_triggers_again(store):
    NoteAlertTracker(store).acknowledge([(1, "Good")])
    states = NoteAlertTracker(store).acknowledge([(1, "Good, needs practice on fractions")])
    assert states == {1: NoteAlertTracker.SHOWN_ONCE}


def test_empty_feedback_is_ignored(store):
    assert NoteAlertTracker(store).acknowledge([(1, ""), (2, None)]) == {}


def test_seen_map_is_persisted_as_user_row(store, parent):
    NoteAlertTracker(store).acknowledge([(5, "Homework done")])
    row = DashboardState.objects.get(user=parent, key=NoteAlertTracker.KEY)
    assert row.value == {"5": "Homework done"}


def test_state_is_scoped_per_user(store, tutor):
    NoteAlertTracker(store).acknowledge([(5, "Homework done")])
    other = NoteAlertTracker(DatabaseStore(tutor.id))
    assert other.state_for(5, "Homework done") == NoteAlertTracker.UNSEEN_NEW


def test_reset_makes_everything_new_again(store, parent):
    tracker = NoteAlertTracker(store)
    tracker.acknowledge([(1, "ok")])
    tracker.reset()
    assert NoteAlertTracker(store).state_for(1, "ok") == NoteAlertTracker.UNSEEN_NEW
    assert not DashboardState.objects.filter(user=parent).exists()


def test_unreadable_state_falls_back_to_default(store, parent):
    DashboardState.objects.create(user=parent, key=NoteAlertTracker.KEY, value="{not json")
    assert NoteAlertTracker(store).seen == {}


def test_seen_notes_survive_many_other_users():
    first = make_user("parent0", UserProfile.Role.PARENT)
    NoteAlertTracker(DatabaseStore(first.id)).acknowledge([(10, "Great work")])

    others = User.objects.bulk_create(
        [User(username=f"parent{n}") for n in range(1, 400)]
    )
    for user in User.objects.filter(username__in=[u.username for u in others]):
        NoteAlertTracker(DatabaseStore(user.id)).acknowledge([(10, "Great work")])

    fresh = NoteAlertTracker(DatabaseStore(first.id))
    assert fresh.acknowledge([(10, "Great work")]) == {10: NoteAlertTracker.STABLE}
    assert DashboardState.objects.filter(key=NoteAlertTracker.KEY).count() == 400


def test_hidden_history_round_trips_through_store(store, parent):
    hidden = HiddenHistory(store)
    hidden.hide(4)
    hidden.hide(2)
    assert store.get(HiddenHistory.KEY) == [2, 4]

    reloaded = HiddenHistory(DatabaseStore(parent.id))
    assert reloaded.is_hidden(4)
    reloaded.unhide(4)
    assert HiddenHistory(store).ids == {2}
