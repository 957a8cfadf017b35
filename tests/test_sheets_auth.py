import base64
import json
from urllib.parse import parse_qs

import httpx
import pytest
from google.auth import crypt

from sheets_auth import (
    JWT_BEARER_GRANT,
    TOKEN_URI,
    CredentialError,
    TokenCache,
    build_assertion,
    load_service_account,
)


def _b64decode(segment):
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def token_endpoint(requests, status=200, payload=None):
    payload = payload if payload is not None else {"access_token": "ya29.token", "expires_in": 3600}

    def handler(request):
        requests.append(request)
        return httpx.Response(status, json=payload)

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_assertion_is_signed_rs256_jwt(rsa_key_pem):
    private_pem, public_pem = rsa_key_pem
    info = {"client_email": "bot@example.iam.gserviceaccount.com", "private_key": private_pem}

    token = build_assertion(info, 1_700_000_000)
    header, claims, signature = token.split(".")

    assert json.loads(_b64decode(header)) == {"alg": "RS256", "typ": "JWT"}
    assert json.loads(_b64decode(claims)) == {
        "iss": "bot@example.iam.gserviceaccount.com",
        "scope": "https://www.googleapis.com/auth/spreadsheets",
        "aud": TOKEN_URI,
        "iat": 1_700_000_000,
        "exp": 1_700_003_600,
    }
    verifier = crypt.RSAVerifier.from_string(public_pem)
    assert verifier.verify(f"{header}.{claims}".encode(), _b64decode(signature))


def test_token_exchanged_with_jwt_bearer_grant(credentials_file):
    requests = []
    cache = TokenCache([str(credentials_file)], http=token_endpoint(requests), clock=Clock(1_000.0))

    assert cache.get_access_token() == "ya29.token"

    assert len(requests) == 1
    form = parse_qs(requests[0].content.decode())
    assert str(requests[0].url) == TOKEN_URI
    assert form["grant_type"] == [JWT_BEARER_GRANT]
    assert form["assertion"][0].count(".") == 2
    assert cache.expiry == 1_000.0 + 3600 - 60


def test_cached_token_reused_until_expiry_margin(credentials_file):
    requests = []
    clock = Clock(1_000.0)
    cache = TokenCache([str(credentials_file)], http=token_endpoint(requests), clock=clock)

    cache.get_access_token()
    clock.now = 1_000.0 + 3539
    cache.get_access_token()
    assert len(requests) == 1

    clock.now = 1_000.0 + 3540
    assert not cache.is_valid(clock.now)
    cache.get_access_token()
    assert len(requests) == 2


def test_is_valid_false_before_first_fetch():
    cache = TokenCache([], http=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500))))
    assert not cache.is_valid(0)


def test_first_existing_credential_path_is_used(tmp_path, credentials_file):
    missing = tmp_path / "secrets" / "credentials.json"
    info = load_service_account([str(missing), str(credentials_file)])
    assert info["client_email"] == "ledger-bot@example.iam.gserviceaccount.com"


def test_inline_credentials_json_wins(tmp_path):
    inline = json.dumps({"client_email": "inline@example.com", "private_key": "pem"})
    assert load_service_account([str(tmp_path / "nope.json")], inline)["client_email"] == "inline@example.com"


def test_missing_credentials_raise(tmp_path):
    with pytest.raises(CredentialError):
        load_service_account([str(tmp_path / "nope.json")])


def test_incomplete_credentials_raise(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"client_email": "bot@example.com"}))
    with pytest.raises(CredentialError):
        load_service_account([str(path)])


def test_bad_private_key_raises(tmp_path):
    with pytest.raises(CredentialError):
        build_assertion({"client_email": "bot@example.com", "private_key": "not a key"}, 0)


@pytest.mark.parametrize(
    "status, payload",
    [(400, {"error": "invalid_grant"}), (200, {"expires_in": 3600})],
)
def test_failed_exchange_raises_and_caches_nothing(credentials_file, status, payload):
    requests = []
    cache = TokenCache([str(credentials_file)], http=token_endpoint(requests, status, payload), clock=Clock(5.0))

    with pytest.raises(CredentialError):
        cache.get_access_token()
    assert cache.value is None
    assert not cache.is_valid(5.0)


def test_transport_error_raises_credential_error(credentials_file):
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    cache = TokenCache([str(credentials_file)], http=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(CredentialError):
        cache.get_access_token()
