from .models import FeatureAccess


# Feature keys used to gate views and nav
FEATURES = {
    'dashboard',
    'view_records',
    'manage_issues',
    'manage_programs',
    'manage_sessions',
    'manage_parents',
    'record_attendance',
    'export_data',
}

COORDINATOR_FEATURES = FEATURES - {'export_data'}
VOLUNTEER_FEATURES = {'dashboard', 'view_records', 'record_attendance'}


def _in_group(user, name: str) -> bool:
    return user.groups.filter(name=name).exists()


def has_feature(user, feature: str) -> bool:
    if not getattr(user, 'is_authenticated', False):
        return False
    if getattr(user, 'is_superuser', False):
        return True
    # Per-user override takes precedence
    fa = FeatureAccess.objects.filter(user=user, feature=feature).first()
    if fa is not None:
        return bool(fa.allow)
    if getattr(user, 'is_staff', False):
        return feature in FEATURES

    # Group-based roles
    if _in_group(user, 'Admin'):
        return True
    if _in_group(user, 'Coordinator'):
        return feature in COORDINATOR_FEATURES
    if _in_group(user, 'Volunteer'):
        return feature in VOLUNTEER_FEATURES

    # Default minimal
    return feature in {'dashboard'}


def caps_for(user):
    return {key: has_feature(user, key) for key in FEATURES}
