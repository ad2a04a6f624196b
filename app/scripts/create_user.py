"""
Create a user (e.g. the first administrator). Run from project root:
  python -m app.scripts.create_user USER_NAME PASSWORD [--real-name NAME] [--role-id ID]
Example:
  python -m app.scripts.create_user admin your-secure-password --real-name "Site Admin"
"""
import argparse
import logging
import sys

from pydantic import ValidationError

from app.core.context import RequestContext
from app.core.database import SessionLocal
from app.core.errors import ServiceError
from app.repositories.user_repository import UserRepository
from app.schemas.user import UserCreate
from app.services.user_service import UserService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a back-office user.")
    parser.add_argument("user_name", help="Login name (1-64 chars)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("--real-name", default="", help="Display name")
    parser.add_argument("--role-id", default=None, help="Role record id")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        service = UserService(UserRepository(db))
        user = service.create(
            RequestContext(),
            UserCreate(
                user_name=args.user_name,
                real_name=args.real_name,
                password=args.password,
                role_id=args.role_id,
            ),
        )
        logger.info("Created user %r with record_id %s", user.user_name, user.record_id)
        return 0
    except ValidationError as e:
        logger.error("Invalid user fields: %s", e)
        return 1
    except ServiceError as e:
        logger.error("Could not create user: %s", e.message)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
