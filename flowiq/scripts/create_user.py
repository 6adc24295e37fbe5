"""
Create a user (e.g. the first admin). Run from project root:
  python -m flowiq.scripts.create_user EMAIL PASSWORD [role] [--name NAME]
Example:
  python -m flowiq.scripts.create_user owner@example.com your-secure-password admin --name Owner
"""
import argparse
import sys

from flowiq.core.database import SessionLocal
from flowiq.core.errors import DuplicateEmailError, StorageError, ValidationError
from flowiq.core.rbac import Role
from flowiq.services import auth_service


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a FlowIQ user.")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.VIEWER.value,
        choices=[r.value for r in Role],
    )
    parser.add_argument("--name", default=None, help="Display name")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = auth_service.register(
            db, args.email, args.password, args.name, role=Role(args.role)
        )
    except (ValidationError, DuplicateEmailError, StorageError) as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.email}' (id={user.id}) with role '{user.role.value}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
