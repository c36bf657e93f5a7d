from __future__ import annotations
"""Authorization capability consulted by the group services.

The engine never decides who may do what; it asks an injected ``Authorizer``
before any mutation. ``ClaimsAuthorizer`` is the implementation wired by the
HTTP layer and reads the ``roles_by_shop`` claim embedded in the JWT at login.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from shopauthz.constants.groups import ADMIN_ROLES, ROLE_OWNER, OWNER_SLUG


@dataclass
class Actor:
    """Acting identity as seen by the engine."""
    user_id: Optional[int]
    roles_by_shop: Dict[int, List[str]] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> 'Actor':
        sub = claims.get('sub')
        raw = claims.get('roles_by_shop') or {}
        # JSON object keys arrive as strings
        roles = {int(k): list(v or []) for k, v in raw.items()}
        return cls(user_id=int(sub) if sub is not None else None, roles_by_shop=roles)

    def permissions_for(self, shop_id: int) -> List[str]:
        return self.roles_by_shop.get(shop_id, [])


class Authorizer:
    def can_administer(self, shop_id: int, actor: Any) -> bool:
        raise NotImplementedError

    def can_invite(self, group: Any, actor: Any) -> bool:
        raise NotImplementedError


class ClaimsAuthorizer(Authorizer):
    def can_administer(self, shop_id: int, actor: Actor) -> bool:
        perms = actor.permissions_for(shop_id)
        return any(r in perms for r in ADMIN_ROLES)

    def can_invite(self, group, actor: Actor) -> bool:
        perms = set(actor.permissions_for(group.shop_id))
        if ROLE_OWNER in perms:
            return True
        if not any(r in perms for r in ADMIN_ROLES):
            return False
        # Only owners hand out ownership
        if group.slug == OWNER_SLUG:
            return False
        return set(group.permissions or []) <= perms


__all__ = ['Actor', 'Authorizer', 'ClaimsAuthorizer']
