from __future__ import annotations
"""Group definition service: create, update (with member cascade), delete, list.

Every public operation asks the injected ``Authorizer`` first and only then
touches storage. Mutations run inside ``atomic`` so a failure leaves nothing
half-written.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from shopauthz import get_db
from shopauthz.config.settings import DEFAULT_MAX_RETRIES
from shopauthz.constants.groups import DEFAULT_GROUP_SLUG
from shopauthz.errors import AccessDenied, DuplicateGroup, GroupInUse, NotFound, ValidationFailed
from shopauthz.models.authz import Group
from shopauthz.services.authorizer import Authorizer
from shopauthz.services.stores import GroupStore, UserRoleStore
from shopauthz.services.transaction import atomic, with_retries
from shopauthz.utils.locks import KeyedLocks, engine_locks, group_key, shop_groups_key, user_shop_key
from shopauthz.utils.validation import normalize_permissions, require_name, slugify

log = logging.getLogger(__name__)


class GroupService:
    def __init__(self, authorizer: Authorizer, session=None, max_retries: int = DEFAULT_MAX_RETRIES,
                 locks: KeyedLocks = engine_locks):
        self.authorizer = authorizer
        self.session = session if session is not None else get_db()
        self.groups = GroupStore(self.session)
        self.roles = UserRoleStore(self.session)
        self.max_retries = max(1, max_retries)
        self.locks = locks

    def _require_admin(self, shop_id: int, actor: Any):
        if not self.authorizer.can_administer(shop_id, actor):
            log.info('access denied: actor=%r shop=%s', actor, shop_id)
            raise AccessDenied()

    # --- create ---

    def create_group(self, group_data: Dict[str, Any], shop_id: int, actor: Any) -> Group:
        self._require_admin(shop_id, actor)
        data = group_data or {}
        name = require_name(data.get('name'))
        slug = slugify(data.get('slug') or name)
        if not slug:
            raise ValidationFailed('slug must contain letters or digits')
        permissions = normalize_permissions(data.get('permissions'))
        description = data.get('description')
        if description is not None and not isinstance(description, str):
            raise ValidationFailed('description must be a string')

        with self.locks.hold(shop_groups_key(shop_id)):
            with atomic(self.session):
                shop = self.groups.shop(shop_id)
                if shop is None:
                    raise NotFound('Shop not found')
                if self.groups.find_by_name(shop_id, name):
                    raise DuplicateGroup()
                if self.groups.find_by_slug(shop_id, slug):
                    raise DuplicateGroup(f'Group slug {slug!r} already in use for this shop')
                grp = Group(shop_id=shop_id, name=name, slug=slug, description=description, permissions=permissions)
                try:
                    self.groups.add(grp)
                except IntegrityError as e:
                    raise DuplicateGroup() from e
                if slug == DEFAULT_GROUP_SLUG and shop.default_group_id is None:
                    shop.default_group_id = grp.id
                    log.info('group %s registered as default for shop %s', grp.id, shop_id)
        log.info('group created: id=%s shop=%s name=%r', grp.id, shop_id, name)
        return grp

    # --- update + cascade ---

    def _parse_update(self, new_data: Dict[str, Any]) -> Dict[str, Any]:
        data = new_data or {}
        changes: Dict[str, Any] = {}
        if 'name' in data:
            changes['name'] = require_name(data['name'])
        if 'description' in data:
            if data['description'] is not None and not isinstance(data['description'], str):
                raise ValidationFailed('description must be a string')
            changes['description'] = data['description']
        if 'permissions' in data:
            changes['permissions'] = normalize_permissions(data['permissions'])
        return changes

    def update_group(self, group_id: int, new_data: Dict[str, Any], shop_id: int, actor: Any) -> Group:
        self._require_admin(shop_id, actor)
        changes = self._parse_update(new_data)
        slug = (new_data or {}).get('slug')
        return with_retries(
            lambda: self._update_once(group_id, changes, slug, shop_id),
            self.max_retries,
            f'update group {group_id}',
        )

    def _update_once(self, group_id: int, changes: Dict[str, Any], slug: Optional[str], shop_id: int) -> Group:
        # Members whose projection comes from this group; re-checked under the locks below
        with atomic(self.session):
            affected = self.roles.user_ids_sourced_from(group_id)
        keys = [group_key(group_id), shop_groups_key(shop_id)] + [user_shop_key(uid, shop_id) for uid in affected]
        with self.locks.hold(*keys):
            with atomic(self.session):
                grp = self.groups.get_in_shop(group_id, shop_id, for_update=True)
                if grp is None:
                    raise NotFound('Group not found')
                if slug is not None and slugify(slug) != grp.slug:
                    raise ValidationFailed('slug cannot be changed')
                if 'name' in changes and changes['name'] != grp.name:
                    if self.groups.find_by_name(shop_id, changes['name'], exclude_id=grp.id):
                        raise DuplicateGroup('Group name already in use for this shop')
                    grp.name = changes['name']
                if 'description' in changes:
                    grp.description = changes['description']
                if 'permissions' in changes:
                    grp.permissions = changes['permissions']
                grp.updated_at = datetime.now(timezone.utc)

                rows = self.roles.projections_sourced_from(grp.id, for_update=True)
                if {r.user_id for r in rows} - set(affected):
                    raise StaleDataError(f'membership of group {grp.id} changed during cascade')
                for row in rows:
                    row.permissions = list(grp.permissions)
                self.session.flush()
        log.info('group updated: id=%s shop=%s cascaded_to=%d', grp.id, shop_id, len(rows))
        return grp

    # --- delete ---

    def delete_group(self, group_id: int, shop_id: int, actor: Any) -> None:
        """Delete an unused group. Groups with members, or the shop default, are refused."""
        self._require_admin(shop_id, actor)
        with self.locks.hold(group_key(group_id), shop_groups_key(shop_id)):
            with atomic(self.session):
                grp = self.groups.get_in_shop(group_id, shop_id, for_update=True)
                if grp is None:
                    raise NotFound('Group not found')
                shop = self.groups.shop(shop_id)
                if shop.default_group_id == grp.id:
                    raise GroupInUse('Cannot delete the shop default group')
                if self.roles.member_count(grp.id) or self.roles.user_ids_sourced_from(grp.id):
                    raise GroupInUse('Group still has members')
                self.groups.delete(grp)
        log.info('group deleted: id=%s shop=%s', group_id, shop_id)

    # --- read / default ---

    def groups_query(self, shop_id: int, actor: Any):
        self._require_admin(shop_id, actor)
        if self.groups.shop(shop_id) is None:
            raise NotFound('Shop not found')
        return self.groups.query_for_shop(shop_id).order_by(Group.id.asc())

    def list_groups(self, shop_id: int, actor: Any) -> List[Group]:
        return self.groups_query(shop_id, actor).all()

    def get_group(self, group_id: int, shop_id: int, actor: Any) -> Group:
        self._require_admin(shop_id, actor)
        grp = self.groups.get_in_shop(group_id, shop_id)
        if grp is None:
            raise NotFound('Group not found')
        return grp

    def set_default_group(self, shop_id: int, group_id: int, actor: Any) -> Group:
        self._require_admin(shop_id, actor)
        with self.locks.hold(group_key(group_id), shop_groups_key(shop_id)):
            with atomic(self.session):
                shop = self.groups.shop(shop_id)
                if shop is None:
                    raise NotFound('Shop not found')
                grp = self.groups.get_in_shop(group_id, shop_id)
                if grp is None:
                    raise NotFound('Group not found')
                shop.default_group_id = grp.id
        log.info('default group of shop %s set to %s', shop_id, group_id)
        return grp


__all__ = ['GroupService']
