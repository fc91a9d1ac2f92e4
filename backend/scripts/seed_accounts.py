"""Development seeding script.

Creates a handful of user and caretaker accounts in the configured database
and prints a session token for each, so the relay can be exercised without
the real account service.

Usage:
    cd backend
    MINDMATE_JWT_SECRET=dev-secret uv run python scripts/seed_accounts.py
"""

from sqlmodel import Session, select

from mindmate.core.database import engine, init_db
from mindmate.core.security import create_access_token
from mindmate.models.account import Account

SEED = [
    ("Asha", "asha@example.com", "user"),
    ("Ben", "ben@example.com", "user"),
    ("Carla", "carla@example.com", "caretaker"),
]

init_db()

with Session(engine) as session:
    for name, email, role in SEED:
        account = session.exec(select(Account).where(Account.email == email)).first()
        if account is None:
            account = Account(name=name, email=email, role=role)
            session.add(account)
            session.commit()
            session.refresh(account)
            print(f"Created {role} {name} ({account.id})")
        else:
            print(f"Found {account.role} {account.name} ({account.id})")
        print(f"  token: {create_access_token(account.id)}")
