from functools import wraps
from flask import g
from ..services.demo_service import restriction_message


def session_required(fn):
    """Reject anonymous requests before the handler touches the store."""
    @wraps(fn)
    def decorator(*args, **kwargs):
        if not g.session.is_authenticated:
            return {'message': 'Authentication required'}, 401
        return fn(*args, **kwargs)
    return decorator


def demo_restricted(action):
    """Answer demo sessions with a restriction notice instead of running ``fn``."""
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            if g.session.is_demo:
                return {'message': restriction_message(action), 'restricted': True}, 200
            return fn(*args, **kwargs)
        return decorator
    return wrapper
