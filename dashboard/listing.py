"""
Filter and pagination state for dashboard lists.

State lives in the query string, one prefix per list, so several lists
can share a page (e.g. ?users-role=tutor&payments-page=3).
"""
from datetime import date, datetime
from urllib.parse import urlencode

from django.conf import settings
from django.core.paginator import Paginator


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _to_query_value(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class ListState:
    """
    Filters plus a 1-based page counter for one list.

    Any filter change resets the page to 1, even when the merged
    filters end up equal to the previous ones.
    """

    def __init__(self, prefix='', filters=None, page=1, per_page=None):
        self.prefix = prefix
        self.per_page = per_page or settings.DASHBOARD_ITEMS_PER_PAGE
        self.filters = {k: v for k, v in (filters or {}).items() if not _is_blank(v)}
        self.page = self._coerce_page(page)
        self.form = None

    @staticmethod
    def _coerce_page(page):
        try:
            page = int(page)
        except (TypeError, ValueError):
            return 1
        return max(page, 1)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_filter(self, **partial):
        """Merge `partial` into the filters; blank values remove a key."""
        merged = dict(self.filters)
        for key, value in partial.items():
            if _is_blank(value):
                merged.pop(key, None)
            else:
                merged[key] = value
        self.filters = merged
        self.page = 1
        return self

    def set_page(self, page):
        """Change the page only; filters are untouched."""
        self.page = self._coerce_page(page)
        return self

    def clear_filters(self):
        self.filters = {}
        self.page = 1
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def offset(self):
        return (self.page - 1) * self.per_page

    @property
    def limit(self):
        return self.per_page

    @property
    def query_key(self):
        """Changes whenever the list must be fetched again."""
        return (
            tuple(sorted((k, _to_query_value(v)) for k, v in self.filters.items())),
            self.page,
            self.per_page,
        )

    def param(self, name):
        return f"{self.prefix}-{name}" if self.prefix else name

    def to_query(self, page=None):
        params = {self.param(k): _to_query_value(v) for k, v in sorted(self.filters.items())}
        page = self.page if page is None else page
        if page != 1:
            params[self.param('page')] = str(page)
        return params

    def urlencode(self, page=None, **extra):
        params = dict(extra)
        params.update(self.to_query(page=page))
        return urlencode(params)

    def paginate(self, queryset):
        """
        Slice `queryset` for the current page.
        Pages beyond the end fall back to the last page.
        """
        paginator = Paginator(queryset, self.per_page)
        return paginator.get_page(self.page)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    ACTION_FILTER = 'filter'
    ACTION_RESET = 'reset'

    @classmethod
    def from_request(cls, request, form_class, prefix, per_page=None):
        """
        Read filters and page from request.GET.

        Values failing form validation are treated as absent. The
        `<prefix>-action` parameter tells a fresh filter submission
        ("filter", back to page 1) or a reset ("reset") apart from plain
        navigation, which keeps the requested page.
        """
        state = cls(prefix=prefix, per_page=per_page)
        action = request.GET.get(state.param('action'))
        data = None if action == cls.ACTION_RESET else (request.GET or None)
        form = form_class(data, prefix=prefix)
        if form.is_bound:
            form.is_valid()
            state.set_filter(**{
                name: value
                for name, value in form.cleaned_data.items()
                if name not in form.errors
            })

        if action == cls.ACTION_RESET:
            state.clear_filters()
        elif action != cls.ACTION_FILTER:
            state.set_page(request.GET.get(state.param('page'), 1))
        state.form = form
        return state

    def __repr__(self):
        return f"ListState(prefix={self.prefix!r}, filters={self.filters!r}, page={self.page})"
