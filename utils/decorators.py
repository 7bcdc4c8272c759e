from __future__ import annotations

from functools import wraps

from flask import current_app, g, request


def current_auth():
    """The AuthComponents built by create_app()."""
    return current_app.extensions["auth"]


def jwt_required():
    """Reject the request unless it carries a valid access token.

    On success the subject id is stored in ``g.current_user_id``. Any
    rejection propagates as an Unauthenticated error, rendered as 401 by the
    app-wide error handlers.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user_id = current_auth().gate.authorize(request.headers)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
