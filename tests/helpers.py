"""Small helpers shared by the test modules."""

PASSWORD = "pw12345678"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
