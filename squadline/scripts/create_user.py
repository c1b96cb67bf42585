"""
Create a users-table account (e.g. the first admin). Run from project root:
  python -m squadline.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m squadline.scripts.create_user admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys

from squadline.core.database import session_scope
from squadline.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from squadline.models import User
from squadline.schemas.auth import EMAIL_RE
from squadline.services.credentials import email_in_use, normalize_email
from squadline.services.roles import DEFAULT_ROLES, assign_role

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Squadline user account.")
    parser.add_argument("email", help="Email address (login name)")
    parser.add_argument(
        "password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)"
    )
    parser.add_argument("role", nargs="?", default="user", choices=sorted(DEFAULT_ROLES))
    args = parser.parse_args(argv)

    email = normalize_email(args.email)
    if not EMAIL_RE.match(email):
        logger.error("Invalid email address: %s", args.email)
        return 1
    if not PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN:
        logger.error(
            "Password must be %s-%s characters.", PASSWORD_MIN_LEN, PASSWORD_MAX_LEN
        )
        return 1

    with session_scope() as db:
        if email_in_use(db, email):
            logger.error("Email %s is already registered.", email)
            return 1
        # password is hashed by the before_insert hook
        user = User(email=email, password=args.password, role=args.role)
        db.add(user)
        db.flush()
        assign_role(db, user, args.role)
        logger.info("Created user %s (id=%s) with role %s.", email, user.id, args.role)
    return 0


if __name__ == "__main__":
    sys.exit(main())
