#!/usr/bin/env python
"""Idempotent seed script for a shop and its preset groups.

Usage:
    python backend/scripts/seed_shop.py "Main Shop"                          # shop + preset groups
    python backend/scripts/seed_shop.py "Main Shop" --owner-email a@b.c     # also create/attach owner
    python backend/scripts/seed_shop.py "Main Shop" --show-groups            # print group summary
    python backend/scripts/seed_shop.py "Main Shop" --dry-run                # run logic then rollback
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from shopauthz import create_app, get_db  # noqa: E402
from shopauthz.models.authz import Base, Group, User  # noqa: E402
from shopauthz.services.shops import ShopProvisioner  # noqa: E402


def ensure_owner(session, email: str, password: str) -> User:
    user = session.execute(select(User).where(User.email==email)).scalar_one_or_none()
    if user is None:
        user = User(name='Owner', email=email, password_hash='')
        user.set_password(password)
        session.add(user)
        session.flush()
        print(f"[INFO] Created owner user {email} with temporary password.")
    return user


def print_group_summary(session, shop):
    rows = session.execute(select(Group).where(Group.shop_id==shop.id).order_by(Group.id)).scalars().all()
    if not rows:
        print('[INFO] No groups present.')
        return
    name_w = max(len(g.name) for g in rows)
    print(f"{'Group'.ljust(name_w)} | Count | Default | Permissions")
    print('-' * (name_w + 50))
    for grp in rows:
        marker = 'yes' if shop.default_group_id == grp.id else ''
        print(f"{grp.name.ljust(name_w)} | {str(len(grp.permissions)).rjust(5)} | {marker.ljust(7)} | {', '.join(grp.permissions)}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Provision a shop with its preset permission groups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed: seed_shop.py "Main Shop"\n  dry run: seed_shop.py "Main Shop" --dry-run\n"""),
    )
    p.add_argument('name', help='Shop display name')
    p.add_argument('--slug', help='Shop slug (derived from name when omitted)')
    p.add_argument('--owner-email', help='Create (if needed) and attach this user to the owner group')
    p.add_argument('--owner-password', default=os.getenv('SEED_OWNER_PASSWORD', 'ChangeMe123!'))
    p.add_argument('--show-groups', action='store_true', help='Print group summary after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM shops LIMIT 1'))
        except Exception:
            # Bootstrap schema when migrations were not run yet; prefer alembic upgrade
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

        try:
            owner_id = None
            if args.owner_email:
                owner_id = ensure_owner(session, args.owner_email, args.owner_password).id
            shop, groups = ShopProvisioner(session).provision(
                args.name, args.slug, owner_user_id=owner_id, commit=not args.dry_run,
            )
            if args.show_groups:
                print('\nGroup Summary:')
                print_group_summary(session, shop)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) shop {shop.slug} with {len(groups)} groups")
            else:
                session.commit()
                print(f"[DONE] shop {shop.slug} (id={shop.id}) with {len(groups)} groups")
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
