from .permissions import caps_for


def nav_context(request):
    """Expose the current user's capabilities to all templates for navbar links."""
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return {"caps": {}}
    return {"caps": caps_for(user)}
