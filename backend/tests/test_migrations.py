import os
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

MIGRATIONS = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'migrations'))


def _config():
    cfg = Config()
    cfg.set_main_option('script_location', MIGRATIONS)
    return cfg


def test_upgrade_and_downgrade(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'migrate.db'}"
    # env.py reads the target database from the environment
    monkeypatch.setenv('DATABASE_URL', url)
    cfg = _config()

    command.upgrade(cfg, 'head')
    engine = create_engine(url)
    insp = inspect(engine)
    tables = set(insp.get_table_names())
    assert {'shops', 'groups', 'users', 'user_groups', 'user_shop_roles'} <= tables
    group_uniques = {u['name'] for u in insp.get_unique_constraints('groups')}
    assert {'uq_group_shop_name', 'uq_group_shop_slug'} <= group_uniques
    assert any(fk['referred_table'] == 'groups' for fk in insp.get_foreign_keys('shops'))
    engine.dispose()

    command.downgrade(cfg, 'base')
    engine = create_engine(url)
    remaining = set(inspect(engine).get_table_names())
    engine.dispose()
    assert not ({'shops', 'groups', 'users'} & remaining)
