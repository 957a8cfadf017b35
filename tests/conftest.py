"""Shared fakes for Telegram updates, the ledger and service-account keys.

Handlers only touch a handful of attributes on ``Update`` and the callback
query, so plain namespaces with ``AsyncMock`` methods stand in for them.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from config import DEFAULT_CATEGORIES
from conversation import ConversationStore
from sheets_sync import MonthlySummary

OWNER_ID = 4242
STRANGER_ID = 1313


class FakeLedger:
    def __init__(self, succeed=True, summary=None):
        self.succeed = succeed
        self.summary = summary
        self.appended = []
        self.summary_calls = 0

    def append_transaction(self, amount, category, notes="", is_reversal=False):
        self.appended.append((amount, category, notes, is_reversal))
        return self.succeed

    def get_monthly_summary(self):
        self.summary_calls += 1
        return self.summary


def make_message_update(text, user_id=OWNER_ID):
    message = SimpleNamespace(text=text, reply_text=AsyncMock())
    return SimpleNamespace(
        effective_user=SimpleNamespace(id=user_id),
        effective_chat=SimpleNamespace(id=user_id),
        message=message,
        callback_query=None,
    )


def make_callback_update(data, user_id=OWNER_ID):
    query = SimpleNamespace(
        data=data,
        from_user=SimpleNamespace(id=user_id),
        answer=AsyncMock(),
        edit_message_text=AsyncMock(),
    )
    return SimpleNamespace(
        effective_user=SimpleNamespace(id=user_id),
        effective_chat=SimpleNamespace(id=user_id),
        message=None,
        callback_query=query,
    )


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger(summary=MonthlySummary({"Food": Decimal("70")}, Decimal("70")))


@pytest.fixture
def context(ledger: FakeLedger) -> SimpleNamespace:
    return SimpleNamespace(
        bot_data={
            "allowed_user_id": OWNER_ID,
            "categories": list(DEFAULT_CATEGORIES),
            "store": ConversationStore(ttl=0),
            "ledger": ledger,
            "clock": lambda: datetime(2024, 5, 20, 10, 30),
        }
    )


@pytest.fixture(scope="session")
def rsa_key_pem() -> tuple[str, str]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def credentials_file(tmp_path, rsa_key_pem):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({
        "client_email": "ledger-bot@example.iam.gserviceaccount.com",
        "private_key": rsa_key_pem[0],
    }))
    return path
