from functools import wraps
from flask import request
from flask_login import current_user
from mlm.exceptions import AuthError, PermissionDenied, ValidationError
from models import UserRole


def admin_required(f):
    """
    Restrict a route to admins. Founders hold every admin permission.
    Returns 401 for anonymous callers and 403 for everyone else.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthError("Authentication required")
        if current_user.role not in (UserRole.ADMIN.value, UserRole.FOUNDER.value):
            raise PermissionDenied("Admin access required")
        return f(*args, **kwargs)

    return decorated_function


def founder_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthError("Authentication required")
        if current_user.role != UserRole.FOUNDER.value:
            raise PermissionDenied("Founder access required")
        return f(*args, **kwargs)

    return decorated_function


def parse_body(schema):
    """Validate the JSON body against a pydantic schema; errors reach the app handler."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Invalid or missing JSON body")
    return schema.model_validate(data)


def pagination(default_limit=50, max_limit=200):
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
        offset = max(int(request.args.get("offset", 0)), 0)
    except ValueError:
        raise ValidationError("limit and offset must be integers")
    return max(limit, 1), offset


def can_see_hidden():
    return current_user.is_authenticated and current_user.role == UserRole.FOUNDER.value
