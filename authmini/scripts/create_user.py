"""
Create a user (e.g. first admin). Run from project root:
  python -m authmini.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m authmini.scripts.create_user admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys

from authmini.core.config import get_settings
from authmini.core.database import Database
from authmini.core.errors import AuthMiniError, InfrastructureError
from authmini.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PasswordHasher, Role
from authmini.services.activity import USER_REGISTERED, SqlActivityLog
from authmini.services.credential_store import SqlCredentialStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an AuthMini user (bootstrap admins here).")
    parser.add_argument("email", help=f"Email (1-{EMAIL_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password (1-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role])
    args = parser.parse_args(argv)

    email = args.email.strip()
    if not email or len(email) > EMAIL_MAX_LEN:
        print("Invalid email length.", file=sys.stderr)
        return 1
    if not args.password or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be 1-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    database = Database(settings.DATABASE_URL)
    db = database.session()
    try:
        store = SqlCredentialStore(db)
        if store.find_by_email(email) is not None:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
        user = store.create(email, hasher.hash(args.password), role=args.role)
        SqlActivityLog(db).record(user.id, USER_REGISTERED)
        print(f"Created user '{email}' (id={user.id}) with role '{args.role}'.")
        return 0
    except AuthMiniError as e:
        print(e.message, file=sys.stderr)
        return 1
    except InfrastructureError as e:
        logger.exception("create_user failed: %s", e)
        return 1
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
