from __future__ import annotations
from shopauthz.errors import NotFound, NoDefaultGroup
from shopauthz.models.authz import Group
from shopauthz.services.stores import GroupStore


class DefaultGroupResolver:
    """Looks up the shop's fallback group through the explicit ``Shop.default_group_id`` reference."""

    def __init__(self, groups: GroupStore):
        self.groups = groups

    def resolve(self, shop_id: int) -> Group:
        shop = self.groups.shop(shop_id)
        if shop is None:
            raise NotFound('Shop not found')
        if shop.default_group_id is None:
            raise NoDefaultGroup(f'No default group configured for shop {shop_id}')
        grp = self.groups.get_in_shop(shop.default_group_id, shop_id)
        if grp is None:
            raise NoDefaultGroup(f'Default group of shop {shop_id} no longer exists')
        return grp

    def default_group_id(self, shop_id: int):
        shop = self.groups.shop(shop_id)
        return shop.default_group_id if shop else None


__all__ = ['DefaultGroupResolver']
