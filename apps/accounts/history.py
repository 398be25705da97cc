from .models import User


def get_history_user(request=None, **kwargs):
    """
    Resolve the user recorded on historical rows.

    Admin sessions authenticate ``auth.User`` while the API authenticates the
    Clerk mirror; only the latter fits the history foreign key.
    """
    user = getattr(request, 'user', None)
    if isinstance(user, User):
        return user
    return None
