"""
scripts/create_admin.py

Create an administrator account from the command line:

    python -m scripts.create_admin

You will be prompted for email and password. Roles are seeded first, so
this also works against a fresh database.
"""

import getpass
import sys

from domus.core.bootstrap import seed_roles
from domus.core.database import SessionLocal
from domus.models import Base
from domus.models.user import Role, RoleName, User
from domus.utils.auth import get_password_hash


def create_admin():
    print("\n── Create Admin User ─────────────────────")

    email = input("Email:    ").strip().lower()
    password = getpass.getpass("Password: ").strip()

    if not email or not password:
        print("Email and password are required.")
        sys.exit(1)

    if len(password) < 8:
        print("Password must be at least 8 characters.")
        sys.exit(1)

    db = SessionLocal()
    try:
        Base.metadata.create_all(bind=db.get_bind())
        seed_roles(db)
        admin_role = db.query(Role).filter(Role.name == RoleName.ADMIN.value).one()

        user = db.query(User).filter(User.email == email).first()
        if user is not None and not user.is_deleted:
            if admin_role in user.roles:
                print(f"'{email}' is already an administrator.")
                sys.exit(1)
            user.roles = [*user.roles, admin_role]
            print(f"Granting admin role to existing user '{email}'.")
        elif user is not None:
            user.is_deleted = False
            user.deleted_at = None
            user.password_hash = get_password_hash(password)
            user.roles = [admin_role]
        else:
            user = User(email=email, password_hash=get_password_hash(password), roles=[admin_role])
            db.add(user)

        db.commit()
        db.refresh(user)

        print("\nAdmin user ready.")
        print(f"   ID:    {user.id}")
        print(f"   Email: {user.email}")
        print(f"   Roles: {', '.join(user.role_names)}\n")

    except Exception as e:
        db.rollback()
        print(f"Failed: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    create_admin()
