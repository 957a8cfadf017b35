"""
Runtime configuration for the finance tracker bot.
Everything comes from the process environment (optionally a .env file).
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_CATEGORIES = [
    "Home", "Commute", "Food", "Subscriptions", "Entertainment",
    "Loans/Emi", "Wellness", "Investments", "Insurances", "Miscellaneous",
]

DEFAULT_CREDENTIAL_PATHS = ["/etc/secrets/credentials.json", "credentials.json"]


@dataclass
class Settings:
    bot_token: str
    sheet_id: str
    allowed_user_id: int
    sheet_name: str = "Transactions"
    credentials_json: str = ""
    credential_paths: list = field(default_factory=lambda: list(DEFAULT_CREDENTIAL_PATHS))
    categories: list = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    state_ttl: float = 86400


def _parse_categories(raw):
    names = [name.strip() for name in raw.split(",") if name.strip()]
    return names or list(DEFAULT_CATEGORIES)


def load_settings(environ=None):
    """Build Settings from the environment.

    Raises ValueError when ALLOWED_USER_ID or STATE_TTL_SECONDS is not a number.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    allowed = environ.get("ALLOWED_USER_ID", "").strip()
    if not allowed.lstrip("-").isdigit():
        raise ValueError(f"ALLOWED_USER_ID must be a Telegram user id, got {allowed!r}")

    paths = list(DEFAULT_CREDENTIAL_PATHS)
    creds_file = environ.get("GOOGLE_CREDENTIALS_FILE", "").strip()
    if creds_file:
        paths.insert(0, creds_file)

    return Settings(
        bot_token=environ.get("TELEGRAM_BOT_TOKEN", "").strip(),
        sheet_id=environ.get("GOOGLE_SHEET_ID", "").strip(),
        allowed_user_id=int(allowed),
        sheet_name=environ.get("GOOGLE_SHEET_RANGE_NAME", "").strip() or "Transactions",
        credentials_json=environ.get("GOOGLE_CREDENTIALS_JSON", ""),
        credential_paths=paths,
        categories=_parse_categories(environ.get("CATEGORIES", "")),
        state_ttl=float(environ.get("STATE_TTL_SECONDS", "86400")),
    )
