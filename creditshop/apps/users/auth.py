from typing import Optional

from rest_framework.exceptions import NotAuthenticated


def current_account_id(request) -> int:
    """Account id of the authenticated caller; raises NotAuthenticated otherwise."""
    user = getattr(request, 'user', None)
    if not user or not getattr(user, 'is_authenticated', False):
        raise NotAuthenticated('Authentication required')
    return user.id


def current_actor(request) -> Optional[object]:
    user = getattr(request, 'user', None)
    if user is not None and getattr(user, 'is_authenticated', False):
        return user
    return None
