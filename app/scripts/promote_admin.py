"""
Promote Admin Script
Grants (or revokes) the admin reporting flag for a user, identified by email.
There is no HTTP route for this; run it against the configured database:

    python -m app.scripts.promote_admin someone@example.com
    python -m app.scripts.promote_admin someone@example.com --revoke
"""

import argparse
import logging
import sys
from typing import List, Optional

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models.user import User

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_admin_flag(db: Session, email: str, is_admin: bool) -> bool:
    """Set ``is_admin`` on the user with this email. Returns False if no such user."""
    user = db.query(User).filter(User.email == email).first()
    if not user:
        return False

    user.is_admin = is_admin
    db.commit()
    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Grant or revoke admin reporting access")
    parser.add_argument("email", help="Email address of the user")
    parser.add_argument("--revoke", action="store_true", help="Remove the admin flag instead")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if not set_admin_flag(db, args.email, not args.revoke):
            logger.error("No user registered with email %s", args.email)
            return 1
    finally:
        db.close()

    logger.info("%s admin access for %s", "Revoked" if args.revoke else "Granted", args.email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
