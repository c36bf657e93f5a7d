import pytest
from shopauthz.constants.groups import GROUP_PRESETS
from shopauthz.errors import DuplicateGroup, ValidationFailed
from shopauthz.models.authz import Group, Shop
from shopauthz.services.default_group import DefaultGroupResolver
from shopauthz.services.shops import ShopProvisioner
from shopauthz.services.stores import GroupStore
from shopauthz.errors import NotFound, NoDefaultGroup
from test_utils_seed import ensure_user, roles_for, group_ids_of


def test_provision_creates_presets_and_default(session):
    shop, groups = ShopProvisioner(session).provision('Corner Store')
    assert shop.slug == 'corner-store'
    assert sorted(groups) == ['customer', 'guest', 'owner', 'shop-manager']
    assert shop.default_group_id == groups['customer'].id
    assert groups['customer'].permissions == GROUP_PRESETS['customer']['permissions']


def test_provision_is_idempotent(session):
    prov = ShopProvisioner(session)
    shop, groups = prov.provision('Corner Store')
    # Customised permissions survive a re-run
    groups['guest'].permissions = ['anonymous']
    session.commit()
    again, groups_again = prov.provision('Corner Store')
    assert again.id == shop.id
    assert {g.id for g in groups_again.values()} == {g.id for g in groups.values()}
    assert session.query(Group).filter_by(shop_id=shop.id).count() == len(GROUP_PRESETS)
    assert groups_again['guest'].permissions == ['anonymous']


def test_provision_attaches_owner(session):
    owner = ensure_user('boss@shop.local')
    shop, groups = ShopProvisioner(session).provision('Corner Store', owner_user_id=owner.id)
    assert group_ids_of(owner.id) == [groups['owner'].id]
    assert roles_for(owner.id, shop.id) == GROUP_PRESETS['owner']['permissions']


def test_provision_dry_run_only_flushes(session):
    shop, groups = ShopProvisioner(session).provision('Scratch', commit=False)
    session.rollback()
    assert session.query(Group).count() == 0


def test_provision_refuses_preset_name_under_other_slug(session, shop):
    session.add(Group(shop_id=shop.id, name='Guest', slug='visitors', permissions=['anonymous']))
    session.commit()
    with pytest.raises(DuplicateGroup) as exc:
        ShopProvisioner(session).provision(shop.name, slug=shop.slug)
    assert exc.value.kind == 'duplicate-group'
    assert 'Guest' in exc.value.description
    # Nothing from the partial run was kept
    assert [g.slug for g in session.query(Group).filter_by(shop_id=shop.id)] == ['visitors']
    assert session.get(Shop, shop.id).default_group_id is None


def test_provision_requires_name(session):
    with pytest.raises(ValidationFailed):
        ShopProvisioner(session).provision('')


def test_resolver_uses_explicit_reference(session):
    shop, groups = ShopProvisioner(session).provision('Corner Store')
    resolver = DefaultGroupResolver(GroupStore(session))
    assert resolver.resolve(shop.id).id == groups['customer'].id
    # Renaming the customer group does not matter; only the stored reference does
    shop.default_group_id = groups['guest'].id
    session.commit()
    assert resolver.resolve(shop.id).slug == 'guest'


def test_resolver_failures(session, shop):
    resolver = DefaultGroupResolver(GroupStore(session))
    with pytest.raises(NotFound) as missing_shop:
        resolver.resolve(999)
    assert not isinstance(missing_shop.value, NoDefaultGroup)
    with pytest.raises(NoDefaultGroup):
        resolver.resolve(shop.id)
