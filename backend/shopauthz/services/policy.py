from __future__ import annotations
from typing import Any, Dict
from flask_jwt_extended import get_jwt
from sqlalchemy import select
from shopauthz import get_db
from shopauthz.models.authz import User
from shopauthz.services.authorizer import Actor


def identity_claims(user: User) -> Dict[str, Any]:
    """JWT claims snapshot of the user's memberships and per-shop permissions."""
    return {
        # JSON object keys must be strings
        'roles_by_shop': {str(shop_id): perms for shop_id, perms in user.roles_by_shop.items()},
        'groups': user.group_ids,
    }


def load_user(user_id: int):
    session = get_db()
    return session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()


def current_actor() -> Actor:
    return Actor.from_claims(get_jwt())
