from __future__ import annotations
"""Group membership and the per-shop permission projection.

Membership is stored as a set of ``user_groups`` rows, but the effective
permissions for a shop are a single ``user_shop_roles`` row that is replaced
wholesale on every add/remove: a user moved from group A to group B ends up
with exactly B's permissions, never A | B.
"""
import logging
from typing import Any
from sqlalchemy.orm.exc import StaleDataError
from shopauthz import get_db
from shopauthz.config.settings import DEFAULT_MAX_RETRIES
from shopauthz.errors import AccessDenied, NotFound
from shopauthz.models.authz import Group
from shopauthz.services.authorizer import Authorizer
from shopauthz.services.default_group import DefaultGroupResolver
from shopauthz.services.stores import GroupStore, UserRoleStore
from shopauthz.services.transaction import atomic, with_retries
from shopauthz.utils.locks import KeyedLocks, engine_locks, group_key, user_shop_key

log = logging.getLogger(__name__)


class MembershipService:
    def __init__(self, authorizer: Authorizer, session=None, max_retries: int = DEFAULT_MAX_RETRIES,
                 locks: KeyedLocks = engine_locks):
        self.authorizer = authorizer
        self.session = session if session is not None else get_db()
        self.groups = GroupStore(self.session)
        self.roles = UserRoleStore(self.session)
        self.resolver = DefaultGroupResolver(self.groups)
        self.max_retries = max(1, max_retries)
        self.locks = locks

    def _authorized_group(self, group_id: int, actor: Any) -> Group:
        with atomic(self.session):
            grp = self.groups.get(group_id)
        if grp is None:
            raise NotFound('Group not found')
        if not self.authorizer.can_invite(grp, actor):
            log.info('access denied: actor=%r group=%s', actor, group_id)
            raise AccessDenied()
        return grp

    def _load_for_write(self, group_id: int, user_id: int):
        grp = self.groups.get(group_id, for_update=True)
        if grp is None:
            raise NotFound('Group not found')
        if self.roles.get_user(user_id) is None:
            raise NotFound('User not found')
        return grp

    def add_user(self, user_id: int, group_id: int, actor: Any) -> None:
        grp = self._authorized_group(group_id, actor)
        shop_id = grp.shop_id

        def unit():
            with self.locks.hold(group_key(group_id), user_shop_key(user_id, shop_id)):
                with atomic(self.session):
                    current = self._load_for_write(group_id, user_id)
                    added = self.roles.add_membership(user_id, group_id)
                    self.roles.set_projection(user_id, shop_id, current.permissions, current.id)
                    self.session.flush()
            return added

        added = with_retries(unit, self.max_retries, f'add user {user_id} to group {group_id}')
        log.info('user %s %s group %s (shop %s)', user_id, 'added to' if added else 'already in', group_id, shop_id)

    def remove_user(self, user_id: int, group_id: int, actor: Any) -> None:
        grp = self._authorized_group(group_id, actor)
        shop_id = grp.shop_id

        def unit():
            with atomic(self.session):
                default_id = self.resolver.default_group_id(shop_id)
            keys = [group_key(group_id), user_shop_key(user_id, shop_id)]
            if default_id is not None:
                keys.append(group_key(default_id))
            with self.locks.hold(*keys):
                with atomic(self.session):
                    self._load_for_write(group_id, user_id)
                    if not self.roles.is_member(user_id, group_id):
                        raise NotFound('User is not a member of this group')
                    # Resolve before mutating: a shop without default must not lose the user's permissions
                    default = self.resolver.resolve(shop_id)
                    if default.id != default_id:
                        raise StaleDataError(f'default group of shop {shop_id} changed')
                    self.roles.remove_membership(user_id, group_id)
                    row = self.roles.projection(user_id, shop_id, for_update=True)
                    # Only the group the projection came from hands the user back to the default
                    if row is None or row.source_group_id in (None, group_id):
                        self.roles.set_projection(user_id, shop_id, default.permissions, default.id)
                        fallback = True
                    else:
                        fallback = False
                    self.session.flush()
            return fallback

        fallback = with_retries(unit, self.max_retries, f'remove user {user_id} from group {group_id}')
        log.info('user %s removed from group %s (shop %s)%s', user_id, group_id, shop_id,
                 ', reset to default group' if fallback else '')


__all__ = ['MembershipService']
