#!/usr/bin/env python3
"""
Create the administrator account configured by ADMIN_EMAIL / ADMIN_PASSWORD
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from jobboard.core.config import settings
from jobboard.core.database import SessionLocal, init_db
from jobboard.services.accounts import ensure_admin
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def create_admin():
    init_db()
    db = SessionLocal()
    try:
        admin, created = ensure_admin(db)
        return admin, created
    except Exception as e:
        logger.error(f"Error creating admin user: {str(e)}")
        db.rollback()
        return None, False
    finally:
        db.close()

if __name__ == "__main__":
    admin, created = create_admin()

    if admin is None:
        print("❌ Failed to create admin user")
        sys.exit(1)

    if created:
        print("✅ Admin user created")
        print(f"   Email: {settings.ADMIN_EMAIL}")
        print(f"   Password: {settings.ADMIN_PASSWORD}")
    else:
        print(f"Admin user {settings.ADMIN_EMAIL} already exists, nothing to do")
