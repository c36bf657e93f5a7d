from functools import wraps
from flask import g
from flask_jwt_extended import verify_jwt_in_request
from shopauthz.services.policy import current_actor


def with_actor(fn):
    """Require a valid bearer token and expose the acting identity as ``g.actor``."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        g.actor = current_actor()
        return fn(*args, **kwargs)
    return wrapper
