"""
Service-account access tokens for the Google Sheets API.

A signed JWT assertion is exchanged at the OAuth token endpoint and the
resulting bearer token is kept until shortly before it expires.
"""

import json
import os
import time

import httpx
from google.auth import crypt, jwt

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

ASSERTION_LIFETIME = 3600
EXPIRY_MARGIN = 60


class CredentialError(Exception):
    """Credentials could not be loaded, signed or exchanged for a token."""


def load_service_account(paths, credentials_json=""):
    """Return the service-account info dict.

    Inline JSON wins; otherwise the first existing path in ``paths`` is read.
    """
    if credentials_json:
        try:
            info = json.loads(credentials_json)
        except json.JSONDecodeError as e:
            raise CredentialError(f"GOOGLE_CREDENTIALS_JSON is not valid JSON: {e}") from e
    else:
        path = next((p for p in paths if os.path.exists(p)), None)
        if path is None:
            raise CredentialError(f"No credentials file found (tried {', '.join(paths)})")
        try:
            with open(path, encoding="utf-8") as fh:
                info = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialError(f"Could not read {path}: {e}") from e

    if not info.get("client_email") or not info.get("private_key"):
        raise CredentialError("Credentials need both client_email and private_key")
    return info


def build_assertion(info, now):
    """Sign the RS256 JWT used for the jwt-bearer grant."""
    try:
        signer = crypt.RSASigner.from_string(info["private_key"])
    except ValueError as e:
        raise CredentialError(f"Invalid private key: {e}") from e

    issued = int(now)
    claims = {
        "iss": info["client_email"],
        "scope": " ".join(SCOPES),
        "aud": TOKEN_URI,
        "iat": issued,
        "exp": issued + ASSERTION_LIFETIME,
    }
    return jwt.encode(signer, claims).decode("ascii")


class TokenCache:
    """Holds one bearer token and its expiry (epoch seconds)."""

    def __init__(self, credential_paths, credentials_json="", http=None, clock=time.time):
        self.credential_paths = list(credential_paths)
        self.credentials_json = credentials_json
        self.value = None
        self.expiry = 0.0
        self._http = http or httpx.Client(timeout=30)
        self._clock = clock

    def is_valid(self, now):
        return self.value is not None and now < self.expiry

    def get_access_token(self):
        now = self._clock()
        if self.is_valid(now):
            return self.value

        info = load_service_account(self.credential_paths, self.credentials_json)
        assertion = build_assertion(info, now)

        try:
            response = self._http.post(
                TOKEN_URI,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
            )
        except httpx.HTTPError as e:
            raise CredentialError(f"Token exchange failed: {e}") from e

        if response.status_code != 200:
            raise CredentialError(f"Token endpoint returned {response.status_code}: {response.text}")

        data = response.json()
        token = data.get("access_token")
        if not token:
            raise CredentialError("Token endpoint response has no access_token")

        self.value = token
        self.expiry = now + int(data.get("expires_in", ASSERTION_LIFETIME)) - EXPIRY_MARGIN
        return token
