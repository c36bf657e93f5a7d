from __future__ import annotations
"""Persistence access for groups and per-user role projections.

Stores only read and stage changes on the session; committing is the job of
the calling service (see ``transaction.atomic``).
"""
from typing import List, Optional
from sqlalchemy import select, delete, func
from shopauthz.models.authz import Shop, Group, User, UserGroup, UserShopRole


def _fresh(stmt, for_update: bool = False):
    # The session keeps objects after commit; reload their columns from the row
    if for_update:
        stmt = stmt.with_for_update()
    return stmt.execution_options(populate_existing=True)


class GroupStore:
    def __init__(self, session):
        self.session = session

    def shop(self, shop_id: int) -> Optional[Shop]:
        return self.session.execute(_fresh(select(Shop).where(Shop.id==shop_id))).scalar_one_or_none()

    def get(self, group_id: int, for_update: bool = False) -> Optional[Group]:
        stmt = _fresh(select(Group).where(Group.id==group_id), for_update)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_in_shop(self, group_id: int, shop_id: int, for_update: bool = False) -> Optional[Group]:
        grp = self.get(group_id, for_update=for_update)
        if grp is None or grp.shop_id != shop_id:
            return None
        return grp

    def find_by_name(self, shop_id: int, name: str, exclude_id: Optional[int] = None) -> Optional[Group]:
        stmt = select(Group).where(Group.shop_id==shop_id, Group.name==name)
        if exclude_id is not None:
            stmt = stmt.where(Group.id!=exclude_id)
        return self.session.execute(stmt).scalars().first()

    def find_by_slug(self, shop_id: int, slug: str) -> Optional[Group]:
        return self.session.execute(select(Group).where(Group.shop_id==shop_id, Group.slug==slug)).scalar_one_or_none()

    def query_for_shop(self, shop_id: int):
        return self.session.query(Group).filter(Group.shop_id==shop_id)

    def add(self, group: Group) -> Group:
        self.session.add(group)
        self.session.flush()  # to get id
        return group

    def delete(self, group: Group):
        self.session.delete(group)
        self.session.flush()


class UserRoleStore:
    def __init__(self, session):
        self.session = session

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()

    def _expire_user(self, user_id: int):
        # Reload membership and projection collections on next access
        user = self.session.identity_map.get(self.session.identity_key(User, user_id))
        if user is not None:
            self.session.expire(user, ['user_groups', 'shop_roles'])

    def is_member(self, user_id: int, group_id: int) -> bool:
        row = self.session.execute(
            select(UserGroup.id).where(UserGroup.user_id==user_id, UserGroup.group_id==group_id)
        ).first()
        return row is not None

    def add_membership(self, user_id: int, group_id: int) -> bool:
        """Insert the membership marker; returns False when it was already there."""
        if self.is_member(user_id, group_id):
            return False
        self.session.add(UserGroup(user_id=user_id, group_id=group_id))
        self._expire_user(user_id)
        return True

    def remove_membership(self, user_id: int, group_id: int) -> bool:
        result = self.session.execute(
            delete(UserGroup).where(UserGroup.user_id==user_id, UserGroup.group_id==group_id)
        )
        self._expire_user(user_id)
        return bool(result.rowcount)

    def member_count(self, group_id: int) -> int:
        return self.session.execute(
            select(func.count(UserGroup.id)).where(UserGroup.group_id==group_id)
        ).scalar_one()

    def member_ids(self, group_id: int) -> List[int]:
        return sorted(self.session.execute(
            select(UserGroup.user_id).where(UserGroup.group_id==group_id)
        ).scalars())

    def projection(self, user_id: int, shop_id: int, for_update: bool = False) -> Optional[UserShopRole]:
        stmt = _fresh(select(UserShopRole).where(UserShopRole.user_id==user_id, UserShopRole.shop_id==shop_id), for_update)
        return self.session.execute(stmt).scalar_one_or_none()

    def projections_sourced_from(self, group_id: int, for_update: bool = False) -> List[UserShopRole]:
        stmt = _fresh(select(UserShopRole).where(UserShopRole.source_group_id==group_id).order_by(UserShopRole.user_id), for_update)
        return list(self.session.execute(stmt).scalars())

    def user_ids_sourced_from(self, group_id: int) -> List[int]:
        return sorted(self.session.execute(
            select(UserShopRole.user_id).where(UserShopRole.source_group_id==group_id)
        ).scalars())

    def set_projection(self, user_id: int, shop_id: int, permissions: List[str], source_group_id: Optional[int]) -> UserShopRole:
        """Overwrite the user's effective permissions for the shop (never merged)."""
        row = self.projection(user_id, shop_id, for_update=True)
        if row is None:
            row = UserShopRole(user_id=user_id, shop_id=shop_id)
            self.session.add(row)
        row.permissions = list(permissions)
        row.source_group_id = source_group_id
        self._expire_user(user_id)
        return row


__all__ = ['GroupStore', 'UserRoleStore']
