import pytest
from shopauthz.errors import ValidationFailed
from shopauthz.utils.validation import slugify, normalize_permissions, require_name


@pytest.mark.parametrize('raw,expected', [
    ('Customer', 'customer'),
    ('Shop Manager', 'shop-manager'),
    ('  Café & Bar!! ', 'caf-bar'),
    ('a--b', 'a-b'),
])
def test_slugify(raw, expected):
    assert slugify(raw) == expected


def test_normalize_permissions_ordered_set():
    assert normalize_permissions(['cart/completed', 'guest', 'cart/completed']) == ['cart/completed', 'guest']
    assert normalize_permissions(None) == []
    assert normalize_permissions(('a', 'b')) == ['a', 'b']


@pytest.mark.parametrize('raw', ['guest', b'guest', 5, [None], ['ok', ' ']])
def test_normalize_permissions_rejects(raw):
    with pytest.raises(ValidationFailed):
        normalize_permissions(raw)


def test_require_name_strips():
    assert require_name('  Staff ') == 'Staff'
    with pytest.raises(ValidationFailed) as exc:
        require_name(None)
    assert exc.value.code == 400
