"""Error taxonomy for the group engine.

Every error is a werkzeug ``HTTPException`` so route handlers can let it
propagate straight to the app's unified error handler. Each class carries a
stable ``kind`` string that callers can branch on without parsing messages.
"""
from __future__ import annotations
from typing import Optional
from werkzeug.exceptions import HTTPException


class GroupEngineError(HTTPException):
    code = 500
    kind = 'group-engine-error'
    description = 'Group engine failure'

    def __init__(self, description: Optional[str] = None):
        super().__init__(description=description or self.description)


class AccessDenied(GroupEngineError):
    code = 403
    kind = 'access-denied'
    description = 'Access Denied'


class ValidationFailed(GroupEngineError):
    code = 400
    kind = 'validation-failed'
    description = 'Invalid group data'


class NotFound(GroupEngineError):
    code = 404
    kind = 'not-found'
    description = 'Not found'


class DuplicateGroup(GroupEngineError):
    code = 409
    kind = 'duplicate-group'
    description = 'Group already exists for this shop'


class GroupInUse(GroupEngineError):
    code = 409
    kind = 'group-in-use'
    description = 'Group still has members or is the shop default'


class NoDefaultGroup(NotFound):
    """Shop has no default group; a configuration fault rather than a bad request."""
    code = 500
    kind = 'no-default-group'
    description = 'No default group configured for shop'


class StorageFailure(GroupEngineError):
    code = 503
    kind = 'storage-failure'
    description = 'Storage failure'


__all__ = [
    'GroupEngineError', 'AccessDenied', 'ValidationFailed', 'NotFound', 'DuplicateGroup',
    'GroupInUse', 'NoDefaultGroup', 'StorageFailure',
]
