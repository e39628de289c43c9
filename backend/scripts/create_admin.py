# backend/scripts/create_admin.py
# Usage: python scripts/create_admin.py [name] [email] [password] [--update]
import asyncio
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from config import AsyncSessionLocal
from models import User
from routers.auth.helpers import auth_helpers
from routers.auth.schemas import UserRole

DEFAULT_NAME = "Admin User"
DEFAULT_EMAIL = "admin@tradeflow.com"
DEFAULT_PASSWORD = "admin123"


def parse_args(argv):
    update = "--update" in argv
    args = [arg for arg in argv if arg != "--update"]
    name = args[0] if len(args) > 0 else DEFAULT_NAME
    email = args[1] if len(args) > 1 else DEFAULT_EMAIL
    password = args[2] if len(args) > 2 else DEFAULT_PASSWORD
    return name, email, password, update


async def create_admin(name: str, email: str, password: str, update: bool = False) -> int:
    if AsyncSessionLocal is None:
        print("DATABASE_URL is missing in your .env file")
        return 1

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        existing = result.scalar_one_or_none()

        if existing:
            if existing.role == UserRole.ADMIN.value:
                print("Admin user already exists with this email")
                print(f"   Name: {existing.name}")
                print(f"   Email: {existing.email}")
                return 0

            print(f"User with email {email} exists but is not an admin (role: {existing.role})")
            if not update:
                print("   Use --update to convert this user to admin.")
                return 0

            existing.role = UserRole.ADMIN.value
            existing.name = name
            existing.password_hash = auth_helpers.hash_password(password)
            await db.commit()
            print("User updated to admin")
            print(f"   Name: {existing.name}")
            print(f"   Email: {existing.email}")
            return 0

        admin = User(
            name=name,
            email=email,
            password_hash=auth_helpers.hash_password(password),
            role=UserRole.ADMIN.value,
            company_name="TradeFlow Admin"
        )
        db.add(admin)
        await db.commit()

        print("Admin user created")
        print(f"   Name: {name}")
        print(f"   Email: {email}")
        print("   Change the password after first login.")
        return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(create_admin(*parse_args(sys.argv[1:]))))
