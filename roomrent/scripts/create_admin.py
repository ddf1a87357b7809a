"""
Create the first ADMIN account (the API has no self-registration).

    python -m roomrent.scripts.create_admin --username admin --password 'secret123'

Re-running for an existing username re-activates the account, resets its
password and promotes it to ADMIN.
"""
import argparse
import logging
import sys

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from roomrent.core.config import settings
from roomrent.core.security import hash_password
from roomrent.models.enums import UserRole
from roomrent.models.user import User
from roomrent.schemas.user import UserCreate

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger("create_admin")


def create_admin(db, username: str, password: str, full_name: str | None = None) -> User:
    user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if user is None:
        user = User(username=username, full_name=full_name)
        db.add(user)
        logger.info("Creating admin user %s", username)
    else:
        logger.info("Resetting existing user %s", username)
    user.hashed_password = hash_password(password)
    user.role = UserRole.ADMIN.value
    user.is_active = True
    if full_name:
        user.full_name = full_name
    return user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--full-name", default=None)
    args = parser.parse_args(argv)

    try:
        payload = UserCreate(username=args.username, password=args.password, full_name=args.full_name)
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        return 1

    engine = create_engine(settings.database_url_sync)
    SessionLocal = sessionmaker(bind=engine)
    with SessionLocal() as db:
        create_admin(db, payload.username, payload.password, payload.full_name)
        db.commit()
    logger.info("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
