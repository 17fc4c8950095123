from django import template

register = template.Library()

STATUS_BADGES = {
    'Active': 'bg-success',
    'Pending': 'bg-warning text-dark',
    'Completed': 'bg-primary',
    'Inactive': 'bg-secondary',
}

PRIORITY_BADGES = {
    'High': 'bg-danger',
    'Medium': 'bg-warning text-dark',
    'Low': 'bg-info text-dark',
}


@register.filter(name='status_badge')
def status_badge(value):
    """Bootstrap badge classes for an issue/program status."""
    return STATUS_BADGES.get(value, 'bg-light text-dark')


@register.filter(name='priority_badge')
def priority_badge(value):
    return PRIORITY_BADGES.get(value, 'bg-light text-dark')


@register.filter(name='percent_of')
def percent_of(part, whole):
    """Whole-number percentage of ``part`` in ``whole``; 0 when ``whole`` is empty."""
    try:
        part, whole = float(part), float(whole)
    except (TypeError, ValueError):
        return 0
    if not whole:
        return 0
    return int(round(part * 100.0 / whole))

