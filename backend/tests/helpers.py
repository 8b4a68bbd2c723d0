"""Plain helpers shared by test modules."""
from sgms.auth import Actor, create_access_token

TEST_PASSWORD = "Passw0rd"


def actor_for(account, role: str) -> Actor:
    return Actor(id=account.id, role=role, email=account.email, name=account.name)


def auth_header(account, role: str) -> dict[str, str]:
    token = create_access_token(account_id=account.id, role=role, email=account.email, name=account.name)
    return {"Authorization": f"Bearer {token}"}
