from functools import wraps

from flask_login import current_user

from ..services.errors import AuthenticationError, PermissionDeniedError


def verified_required(view):
    """Reject authenticated users whose account has not been verified yet."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthenticationError("Unauthorized")
        if not current_user.is_verified:
            raise PermissionDeniedError("Account is not verified")
        return view(*args, **kwargs)

    return wrapped


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthenticationError("Unauthorized")
        if not current_user.is_admin:
            raise PermissionDeniedError("Forbidden")
        return view(*args, **kwargs)

    return wrapped
