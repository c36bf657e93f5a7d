"""Central definitions for preset group slugs and their permission tokens.
Extend cautiously; shops provisioned earlier keep whatever permissions they were created with.
"""
from __future__ import annotations
from typing import Dict

DEFAULT_GROUP_SLUG = 'customer'
OWNER_SLUG = 'owner'

# Shop roles that grant administrative rights over a shop's groups
ROLE_OWNER = 'owner'
ROLE_ADMIN = 'admin'
ADMIN_ROLES = (ROLE_OWNER, ROLE_ADMIN)

GROUP_PRESETS: Dict[str, Dict[str, object]] = {
    'owner': {
        'name': 'Owner',
        'permissions': ['owner', 'admin', 'createProduct', 'dashboard', 'account/profile', 'guest', 'product', 'tag', 'index', 'cart/completed'],
    },
    'shop manager': {
        'name': 'Shop Manager',
        'permissions': ['admin', 'createProduct', 'dashboard', 'account/profile', 'guest', 'product', 'tag', 'index', 'cart/completed'],
    },
    'customer': {
        'name': 'Customer',
        'permissions': ['guest', 'account/profile', 'product', 'tag', 'index', 'cart/completed'],
    },
    'guest': {
        'name': 'Guest',
        'permissions': ['anonymous', 'guest', 'product', 'tag', 'index', 'cart/completed'],
    },
}

