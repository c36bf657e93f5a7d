from __future__ import annotations
from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, ForeignKey, JSON, UniqueConstraint, DateTime, Text, text
from typing import Optional, List, Dict

Base = declarative_base()

# --- Core Models ---
class Shop(Base):
    __tablename__ = 'shops'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    # Explicit default group reference, set at provisioning time (no name-based inference)
    default_group_id: Mapped[Optional[int]] = mapped_column(ForeignKey('groups.id', ondelete='SET NULL', use_alter=True, name='fk_shops_default_group'), nullable=True)
    groups = relationship('Group', back_populates='shop', foreign_keys='Group.shop_id', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))


class Group(Base):
    __tablename__ = 'groups'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    shop_id: Mapped[int] = mapped_column(ForeignKey('shops.id', ondelete='CASCADE'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    slug: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    permissions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    shop = relationship('Shop', back_populates='groups', foreign_keys=[shop_id])
    user_groups = relationship('UserGroup', back_populates='group', cascade='all, delete-orphan')

    __table_args__ = (
        UniqueConstraint('shop_id', 'name', name='uq_group_shop_name'),
        UniqueConstraint('shop_id', 'slug', name='uq_group_shop_slug'),
    )
    __mapper_args__ = {'version_id_col': version}

    def to_dict(self) -> Dict[str, object]:
        return {
            'id': self.id,
            'shop_id': self.shop_id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'permissions': list(self.permissions or []),
        }


class User(Base):
    __tablename__ = 'users'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    user_groups = relationship('UserGroup', back_populates='user', cascade='all, delete-orphan')
    shop_roles = relationship('UserShopRole', back_populates='user', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    def set_password(self, raw: str):
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        from werkzeug.security import check_password_hash
        return check_password_hash(self.password_hash, raw)

    @property
    def group_ids(self) -> List[int]:
        return sorted(ug.group_id for ug in self.user_groups)

    @property
    def roles_by_shop(self) -> Dict[int, List[str]]:
        return {r.shop_id: list(r.permissions or []) for r in self.shop_roles}


class UserGroup(Base):
    __tablename__ = 'user_groups'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    group_id: Mapped[int] = mapped_column(ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    __table_args__ = (UniqueConstraint('user_id', 'group_id', name='uq_user_group'),)
    user = relationship('User', back_populates='user_groups')
    group = relationship('Group', back_populates='user_groups')


class UserShopRole(Base):
    """Effective permission projection of one user for one shop.

    Always overwritten as a whole; ``source_group_id`` is the group the
    current projection was copied from.
    """
    __tablename__ = 'user_shop_roles'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    shop_id: Mapped[int] = mapped_column(ForeignKey('shops.id', ondelete='CASCADE'), nullable=False, index=True)
    permissions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    source_group_id: Mapped[Optional[int]] = mapped_column(ForeignKey('groups.id', ondelete='SET NULL'), nullable=True, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))
    __table_args__ = (UniqueConstraint('user_id', 'shop_id', name='uq_user_shop_role'),)
    __mapper_args__ = {'version_id_col': version}
    user = relationship('User', back_populates='shop_roles')
