from decimal import Decimal, InvalidOperation

from django import template

register = template.Library()


STATUS_BADGES = {
    'active': 'badge-success',
    'approved': 'badge-success',
    'completed': 'badge-success',
    'paid': 'badge-success',
    'pending': 'badge-warning',
    'scheduled': 'badge-info',
    'paused': 'badge-secondary',
    'cancelled': 'badge-secondary',
    'rejected': 'badge-danger',
    'failed': 'badge-danger',
    'no_show': 'badge-danger',
    'refunded': 'badge-secondary',
}


@register.filter
def get_item(mapping, key):
    """
    Look up a dict key dynamically.
    Usage: {{ row|get_item:"course_name" }}
    """
    try:
        return mapping[key]
    except (KeyError, TypeError):
        return ""


@register.filter
def status_badge(status):
    """
    CSS class for a status value.
    Usage: <span class="badge {{ row.status|status_badge }}">
    """
    return STATUS_BADGES.get(str(status).lower(), 'badge-light')


@register.filter
def money(value, currency='usd'):
    """
    Format an amount with two decimals.
    Usage: {{ payment.amount|money:payment.currency }}
    """
    try:
        amount = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError):
        return value
    symbol = '$' if str(currency).lower() == 'usd' else f"{str(currency).upper()} "
    return f"{symbol}{amount:,}"


@register.simple_tag
def page_url(state, page, **extra):
    """
    Query string for another page of a list, keeping its filters.
    Usage: <a href="?{% page_url state n tab=tab %}">
    """
    return state.urlencode(page=page, **{k: v for k, v in extra.items() if v})
