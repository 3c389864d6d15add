"""Payload builders and token helpers shared by the test modules."""

from datetime import datetime, timedelta, timezone

import jwt


TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def make_token(sub: str = USER_ID, secret: str = TEST_SECRET, **claims) -> str:
    payload = {
        "sub": sub,
        "email": f"{sub}@example.com",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def budget_payload(**overrides):
    payload = {
        "name": "Groceries",
        "maximum_spending": "500.00",
        "color_tag": "#1A2B3C",
    }
    payload.update(overrides)
    return payload


def income_payload(**overrides):
    payload = {"name": "Salary", "color_tag": "#00AA00"}
    payload.update(overrides)
    return payload


def pot_payload(**overrides):
    payload = {
        "name": "Holiday",
        "target": "1000.00",
        "color_tag": "#FFAA00",
        "total_saved": "50.00",
    }
    payload.update(overrides)
    return payload


def transaction_payload(category_id: str, **overrides):
    payload = {
        "name": "Weekly shop",
        "type": "expense",
        "amount": "42.50",
        "recipient_or_payer": "Corner Market",
        "transaction_date": datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        "description": None,
        "emoji": "\U0001F6D2",
        "category_id": category_id,
    }
    payload.update(overrides)
    return payload
