"""
Bootstrap script — creates the first SUPER_ADMIN.

Invitations can only be issued by a super admin, so the very first one is
granted directly in the database:

    python seed_super_admin.py --email owner@example.com --password 'change-me-now'

Uses DATABASE_URL from the environment / .env. Running it again for an email
that already has admin access only resets its password.
"""
import argparse
import getpass
import sys

from sqlalchemy.exc import SQLAlchemyError

from admin_console.config import settings
from admin_console.database import Base, SessionLocal, dispose_engine, init_engine
from admin_console.services.audit import AuditAction, record_admin_action
from admin_console.services.provisioning import grant_admin_access
from admin_console.utils.permissions import AdminRole, PermissionModule


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create the first super admin")
    parser.add_argument("--email", required=True, help="Email of the super admin")
    parser.add_argument("--name", default=None, help="Display name (defaults to the email local-part)")
    parser.add_argument("--password", default=None, help="Initial password (prompted when omitted)")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first (local SQLite runs; use alembic elsewhere)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    password = args.password or getpass.getpass("Password: ")
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        print(f"  ❌ Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
        return 1

    print("\n🌱 Bootstrapping super admin...\n")

    engine = init_engine()
    if args.create_tables:
        import admin_console.models  # noqa: F401  (registers tables on Base)
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        result = grant_admin_access(
            db,
            email=args.email,
            role=AdminRole.SUPER_ADMIN.value,
            password=password,
            name=args.name,
        )
        if result.created:
            record_admin_action(
                db,
                admin_id=result.admin_access.id,
                action=AuditAction.CREATE,
                module=PermissionModule.ADMIN_MANAGEMENT.value,
                resource_type="AdminAccess",
                resource_id=result.admin_access.id,
                description=f"Bootstrapped super admin {result.user.email}",
            )
        db.commit()
        created = result.created
        email, admin_id, admin_role = result.user.email, result.admin_access.id, result.admin_access.admin_role
    except (SQLAlchemyError, ValueError) as exc:
        db.rollback()
        print(f"  ❌ Could not create super admin: {exc}")
        return 1
    finally:
        db.close()
        dispose_engine()

    if created:
        print(f"  ✓ Super admin created  {email}  ({admin_id})")
    else:
        print(f"  ✓ {email} already has admin access ({admin_role}); password reset")
    return 0


if __name__ == "__main__":
    sys.exit(main())
