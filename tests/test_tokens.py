import base64
import json

import pytest

from tablekv.auth.tokens import INVALID_TOKEN_MESSAGE, TokenService
from tablekv.core.errors import AuthError, ConfigurationError

SECRET = "unit-test-secret"


def _decode(part: str) -> dict:
    return json.loads(base64.b64decode(part))


def test_issue_then_verify_returns_payload():
    svc = TokenService(SECRET)
    payload = svc.verify(svc.issue())
    assert payload["username"] == "admin"
    assert payload["exp"] == payload["iat"] + 86400


def test_wire_format_uses_standard_base64_parts():
    svc = TokenService(SECRET, clock=lambda: 1_700_000_000)
    header_b64, payload_b64, sig_b64 = svc.issue().split(".")
    assert _decode(header_b64) == {"alg": "HS256", "typ": "JWT"}
    assert _decode(payload_b64) == {"username": "admin", "iat": 1_700_000_000, "exp": 1_700_086_400}
    assert len(base64.b64decode(sig_b64, validate=True)) == 32


def test_missing_secret_is_configuration_error():
    with pytest.raises(ConfigurationError):
        TokenService("")


def test_tampered_signature_fails():
    svc = TokenService(SECRET)
    header, payload, sig = svc.issue().split(".")
    raw = bytearray(base64.b64decode(sig))
    for i in range(len(raw)):
        forged = bytearray(raw)
        forged[i] ^= 0x01
        token = f"{header}.{payload}.{base64.b64encode(bytes(forged)).decode()}"
        with pytest.raises(AuthError):
            svc.verify(token)


def test_tampered_payload_fails():
    svc = TokenService(SECRET)
    header, _, sig = svc.issue().split(".")
    forged = base64.b64encode(json.dumps({"username": "admin", "iat": 0, "exp": 9_999_999_999}).encode()).decode()
    with pytest.raises(AuthError):
        svc.verify(f"{header}.{forged}.{sig}")


def test_token_signed_with_other_secret_fails():
    token = TokenService("another-secret").issue()
    with pytest.raises(AuthError):
        TokenService(SECRET).verify(token)


def test_expired_token_fails_even_with_valid_signature():
    svc = TokenService(SECRET)
    token = svc.issue(now=1_000_000)  # exp = 1_086_400, long past
    with pytest.raises(AuthError):
        svc.verify(token)


def test_expiry_boundary_is_strict():
    now = [1_700_000_000.0]
    svc = TokenService(SECRET, clock=lambda: now[0])
    token = svc.issue()
    now[0] += 86400
    assert svc.verify(token)["username"] == "admin"
    now[0] += 1
    with pytest.raises(AuthError):
        svc.verify(token)


@pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "a.b.!!notbase64!!"])
def test_malformed_tokens_fail_with_generic_message(token):
    with pytest.raises(AuthError) as ei:
        TokenService(SECRET).verify(token)
    assert ei.value.message == INVALID_TOKEN_MESSAGE


def test_validly_signed_token_without_username_fails():
    svc = TokenService(SECRET)
    header = base64.b64encode(b'{"alg":"HS256","typ":"JWT"}').decode()
    payload = base64.b64encode(b'{"exp":9999999999}').decode()
    sig = base64.b64encode(svc._sign(f"{header}.{payload}")).decode()
    with pytest.raises(AuthError):
        svc.verify(f"{header}.{payload}.{sig}")
