"""
Create the bootstrap admin account

Usage: python -m quizhub.create_admin
Reads ADMIN_EMAIL and ADMIN_PASSWORD from the environment / .env.
"""
import logging

from quizhub.config import settings
from quizhub.database import SessionLocal, init_db
from quizhub.services.user_service import user_service

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL))
    init_db()

    db = SessionLocal()
    try:
        admin, created = user_service.ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    finally:
        db.close()

    if created:
        print(f"Admin created: {admin.email}")
    else:
        print(f"Admin already exists: {admin.email}")


if __name__ == "__main__":
    main()
