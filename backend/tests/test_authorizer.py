from types import SimpleNamespace
from shopauthz.services.authorizer import Actor, ClaimsAuthorizer


def _group(slug='staff', permissions=('product', 'tag'), shop_id=1):
    return SimpleNamespace(id=10, shop_id=shop_id, slug=slug, permissions=list(permissions))


def test_actor_from_claims_converts_shop_keys():
    actor = Actor.from_claims({'sub': '7', 'roles_by_shop': {'1': ['admin'], '2': None}})
    assert actor.user_id == 7
    assert actor.roles_by_shop == {1: ['admin'], 2: []}
    assert actor.permissions_for(3) == []


def test_administer_requires_owner_or_admin_in_that_shop():
    authz = ClaimsAuthorizer()
    assert authz.can_administer(1, Actor(1, {1: ['owner']}))
    assert authz.can_administer(1, Actor(1, {1: ['admin', 'product']}))
    assert not authz.can_administer(1, Actor(1, {1: ['guest'], 2: ['owner']}))
    assert not authz.can_administer(1, Actor(None))


def test_owner_can_invite_anywhere():
    authz = ClaimsAuthorizer()
    owner = Actor(1, {1: ['owner']})
    assert authz.can_invite(_group(slug='owner', permissions=['owner', 'admin']), owner)
    assert authz.can_invite(_group(permissions=['anything']), owner)


def test_admin_invites_only_into_groups_within_own_permissions():
    authz = ClaimsAuthorizer()
    admin = Actor(1, {1: ['admin', 'product', 'tag']})
    assert authz.can_invite(_group(permissions=['product']), admin)
    assert not authz.can_invite(_group(permissions=['product', 'dashboard']), admin)
    assert not authz.can_invite(_group(slug='owner', permissions=['product']), admin)
    # Permissions in another shop do not count
    assert not authz.can_invite(_group(shop_id=2, permissions=['product']), admin)


def test_non_admin_cannot_invite():
    authz = ClaimsAuthorizer()
    customer = Actor(1, {1: ['guest', 'product']})
    assert not authz.can_invite(_group(permissions=['guest']), customer)
