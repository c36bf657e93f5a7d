from __future__ import annotations
"""Shop provisioning: a shop plus its preset groups and default-group reference.

Bootstrap path used by the seed script and tests; it runs below the
authorization layer because no administrator exists before the shop does.
"""
import logging
from typing import Dict, Optional, Tuple
from sqlalchemy import select
from shopauthz import get_db
from shopauthz.constants.groups import GROUP_PRESETS, DEFAULT_GROUP_SLUG, OWNER_SLUG
from shopauthz.errors import DuplicateGroup
from shopauthz.models.authz import Shop, Group
from shopauthz.services.stores import GroupStore, UserRoleStore
from shopauthz.services.transaction import atomic
from shopauthz.utils.validation import require_name, slugify

log = logging.getLogger(__name__)


class ShopProvisioner:
    def __init__(self, session=None):
        self.session = session if session is not None else get_db()
        self.groups = GroupStore(self.session)
        self.roles = UserRoleStore(self.session)

    def ensure_shop(self, name: str, slug: Optional[str] = None) -> Tuple[Shop, bool]:
        name = require_name(name)
        slug = slugify(slug or name)
        shop = self.session.execute(select(Shop).where(Shop.slug==slug)).scalar_one_or_none()
        if shop:
            return shop, False
        shop = Shop(name=name, slug=slug)
        self.session.add(shop)
        self.session.flush()
        return shop, True

    def ensure_preset_groups(self, shop: Shop) -> Dict[str, Group]:
        """Create any missing preset group; existing groups keep their current permissions."""
        out: Dict[str, Group] = {}
        for key, preset in GROUP_PRESETS.items():
            slug = slugify(key)
            grp = self.groups.find_by_slug(shop.id, slug)
            if grp is None and self.groups.find_by_name(shop.id, preset['name']):
                raise DuplicateGroup(f'Group {preset["name"]!r} exists in shop {shop.id} under another slug')
            if grp is None:
                grp = self.groups.add(Group(
                    shop_id=shop.id,
                    name=preset['name'],
                    slug=slug,
                    permissions=list(preset['permissions']),
                ))
                log.info('preset group %r created for shop %s', slug, shop.id)
            out[slug] = grp
        if shop.default_group_id is None:
            shop.default_group_id = out[DEFAULT_GROUP_SLUG].id
        return out

    def _stage(self, name, slug, owner_user_id):
        shop, created = self.ensure_shop(name, slug)
        groups = self.ensure_preset_groups(shop)
        if owner_user_id is not None:
            owner_group = groups[OWNER_SLUG]
            self.roles.add_membership(owner_user_id, owner_group.id)
            self.roles.set_projection(owner_user_id, shop.id, owner_group.permissions, owner_group.id)
        self.session.flush()
        return shop, groups, created

    def provision(self, name: str, slug: Optional[str] = None, owner_user_id: Optional[int] = None, commit: bool = True):
        """Idempotently create the shop, its preset groups and (optionally) its owner membership.

        With ``commit=False`` the changes are only flushed and the caller decides (dry runs).
        """
        if commit:
            with atomic(self.session):
                shop, groups, created = self._stage(name, slug, owner_user_id)
        else:
            shop, groups, created = self._stage(name, slug, owner_user_id)
        log.info('shop %s %s', shop.slug, 'provisioned' if created else 'already provisioned')
        return shop, groups


__all__ = ['ShopProvisioner']
