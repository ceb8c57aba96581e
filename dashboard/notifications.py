"""
Per-user dashboard state: seen tutor notes and hidden history.

State is kept in an injected key/value store scoped to one user. The
default store keeps each value as a JSON row in the database, so it
survives restarts and is shared by every worker process.
Two tabs writing the same key race; the last write wins.
"""
import logging

from .models import DashboardState

logger = logging.getLogger(__name__)

NEW_NOTES_MESSAGE = "New tutor notes available in History"


class KeyValueStore:
    """Minimal get/set/delete interface used by the trackers below."""

    def get(self, key, default=None):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError


class DatabaseStore(KeyValueStore):
    """KeyValueStore over DashboardState rows for one user."""

    def __init__(self, user_id):
        self.user_id = user_id

    def _rows(self, key):
        return DashboardState.objects.filter(user_id=self.user_id, key=key)

    def get(self, key, default=None):
        row = self._rows(key).values_list('value', flat=True).first()
        return default if row is None else row

    def set(self, key, value):
        DashboardState.objects.update_or_create(
            user_id=self.user_id,
            key=key,
            defaults={'value': value},
        )

    def delete(self, key):
        self._rows(key).delete()


class NoteAlertTracker:
    """
    Decides when a session's tutor feedback earns a "new notes" alert.

    unseen_new -> shown_once happens once per distinct feedback text and is
    persisted immediately. Afterwards the same text stays `stable`.
    """

    KEY = 'parent_seen_notes'

    UNSEEN_NEW = 'unseen_new'
    SHOWN_ONCE = 'shown_once'
    STABLE = 'stable'

    def __init__(self, store):
        self.store = store
        seen = store.get(self.KEY, {})
        if not isinstance(seen, dict):
            logger.warning("Discarding unreadable seen-notes state")
            seen = {}
        self.seen = seen

    def state_for(self, session_id, feedback):
        """State before any acknowledgement in this request."""
        if not feedback:
            return None
        if self.seen.get(str(session_id)) == feedback:
            return self.STABLE
        return self.UNSEEN_NEW

    def acknowledge(self, items):
        """
        Mark every unseen (session_id, feedback) pair as shown.

        Returns:
            dict: session_id -> 'shown_once' | 'stable' for items with feedback
        """
        states = {}
        changed = False
        for session_id, feedback in items:
            state = self.state_for(session_id, feedback)
            if state is None:
                continue
            if state == self.UNSEEN_NEW:
                self.seen[str(session_id)] = feedback
                state = self.SHOWN_ONCE
                changed = True
            states[session_id] = state
        if changed:
            self.store.set(self.KEY, self.seen)
        return states

    def reset(self):
        self.seen = {}
        self.store.delete(self.KEY)


class HiddenHistory:
    """Session ids a tutor chose to hide from their history list."""

    KEY = 'tutor_hidden_sessions'

    def __init__(self, store):
        self.store = store
        stored = store.get(self.KEY, [])
        self.ids = {int(i) for i in stored} if isinstance(stored, list) else set()

    def _save(self):
        self.store.set(self.KEY, sorted(self.ids))

    def hide(self, session_id):
        self.ids.add(int(session_id))
        self._save()

    def unhide(self, session_id):
        self.ids.discard(int(session_id))
        self._save()

    def is_hidden(self, session_id):
        return int(session_id) in self.ids
