import importlib.util
import os
from shopauthz.services.shops import ShopProvisioner

SCRIPT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'scripts', 'seed_shop.py'))


def _load_script():
    spec = importlib.util.spec_from_file_location('seed_shop', SCRIPT)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def test_parse_args_defaults():
    mod = _load_script()
    args = mod.parse_args(['Main Shop', '--owner-email', 'o@shop.local', '--dry-run'])
    assert args.name == 'Main Shop'
    assert args.owner_email == 'o@shop.local'
    assert args.dry_run is True
    assert args.show_groups is False


def test_ensure_owner_and_summary(session, capsys):
    mod = _load_script()
    owner = mod.ensure_owner(session, 'o@shop.local', 'secret')
    assert mod.ensure_owner(session, 'o@shop.local', 'other').id == owner.id
    assert owner.verify_password('secret')
    shop, groups = ShopProvisioner(session).provision('Main Shop', owner_user_id=owner.id)
    mod.print_group_summary(session, shop)
    out = capsys.readouterr().out
    assert 'Customer' in out
    assert 'yes' in out
