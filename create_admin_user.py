"""
Create an admin user for the salon admin panel
Usage: python create_admin_user.py [--email EMAIL] [--first-name NAME] [--last-name NAME] [--role ROLE]
"""
import argparse
import getpass
import logging
import sys
from typing import Optional

from salon_booking import config
from salon_booking.database import Database
from salon_booking.domain.auth.repository import AdminUserRepository
from salon_booking.models import ADMIN_ROLES, ROLE_ADMIN, utcnow
from salon_booking.security_utils import check_password_strength, hash_password
from salon_booking.shared.validators import validate_email

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)


def ask(prompt: str, current: Optional[str] = None) -> str:
    while not current:
        current = input(prompt).strip()
    return current


def ask_password() -> str:
    while True:
        password = getpass.getpass("Password: ")
        strength = check_password_strength(password)
        if not strength["is_valid"]:
            logger.warning(f"Password is {strength['strength']}:")
            for tip in strength["feedback"]:
                logger.warning(f"  - {tip}")
            continue
        if getpass.getpass("Confirm password: ") != password:
            logger.warning("Passwords do not match")
            continue
        return password


def create_admin_user(database: Database, email: str, password: str, first_name: str, last_name: str, role: str):
    """Create the account, refusing duplicates"""
    with database.session() as db:
        if AdminUserRepository.get_by_email(db, email):
            raise ValueError(f"An admin user with email {email} already exists")
        return AdminUserRepository.create_user(
            db, email, hash_password(password), first_name, last_name, role, utcnow()
        )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--email")
    parser.add_argument("--first-name")
    parser.add_argument("--last-name")
    parser.add_argument("--role", choices=ADMIN_ROLES, default=ROLE_ADMIN)
    args = parser.parse_args(argv)

    logger.info("\n💇 Hair by Rhi - Admin User Setup\n")

    database = Database(config.DATABASE_URL)
    try:
        logger.info("📊 Checking database connection...")
        if not database.ping():
            logger.error("❌ Could not connect to the database")
            return 1
        database.create_all()

        email = validate_email(ask("Email: ", args.email))
        first_name = ask("First name: ", args.first_name)
        last_name = ask("Last name: ", args.last_name)
        password = ask_password()

        user = create_admin_user(database, email, password, first_name, last_name, args.role)
        logger.info(f"✅ Admin user created: {user.email} (id {user.id}, role {user.role})")
        return 0
    except ValueError as e:
        logger.error(f"❌ {e}")
        return 1
    finally:
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
