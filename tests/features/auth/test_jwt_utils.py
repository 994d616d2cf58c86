"""Tests for access token issuing/verification and refresh token values."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from src.config.settings import settings
from src.features.auth.exceptions import InvalidTokenException, TokenExpiredException
from src.features.auth.jwt_utils import (
    create_access_token,
    decode_access_token,
    generate_refresh_token_value,
    hash_refresh_token,
)
from src.features.user.roles import Role

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


def _forge(payload: dict, secret: str | None = None) -> str:
    return jwt.encode(payload, secret or settings.secret_key, algorithm=settings.jwt_algorithm)


def _valid_payload(**overrides) -> dict:
    payload = {
        "sub": "7",
        "email": "pilot@example.com",
        "roles": ["PILOT"],
        "jti": "6a1e4c1e-6b5d-4b8e-9d0a-0b8f3e9c2d11",
        "iat": NOW,
        "exp": NOW + timedelta(minutes=15),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "type": "access",
    }
    payload.update(overrides)
    return payload


class TestCreateAccessToken:
    def test_round_trip_returns_same_identity_and_roles(self):
        token, _ = create_access_token(42, "ana@example.com", {Role.INSTRUCTOR, Role.PILOT}, now=NOW)

        claims = decode_access_token(token, now=NOW)

        assert claims.user_id == 42
        assert claims.email == "ana@example.com"
        assert claims.roles == frozenset({Role.INSTRUCTOR, Role.PILOT})
        assert claims.iat == NOW

    def test_returned_claims_match_encoded_token(self):
        token, claims = create_access_token(1, "a@example.com", {Role.STUDENT}, now=NOW)
        assert decode_access_token(token, now=NOW) == claims

    def test_default_lifetime_comes_from_settings(self):
        _, claims = create_access_token(1, "a@example.com", set(), now=NOW)
        assert claims.exp - claims.iat == timedelta(minutes=settings.access_token_expire_minutes)

    def test_iat_is_truncated_to_seconds(self):
        _, claims = create_access_token(1, "a@example.com", set(), now=NOW.replace(microsecond=999_999))
        assert claims.iat == NOW

    def test_each_token_gets_a_unique_jti(self):
        _, first = create_access_token(1, "a@example.com", set(), now=NOW)
        _, second = create_access_token(1, "a@example.com", set(), now=NOW)
        assert first.jti != second.jti

    def test_standard_claims_are_present(self):
        token, _ = create_access_token(1, "a@example.com", {Role.ADMIN}, now=NOW)
        raw = jwt.decode(token, options={"verify_signature": False})

        assert raw["iss"] == settings.jwt_issuer
        assert raw["aud"] == settings.jwt_audience
        assert raw["sub"] == "1"
        assert raw["nbf"] == raw["iat"]
        assert raw["type"] == "access"
        assert raw["roles"] == ["ADMIN"]


class TestDecodeAccessToken:
    def test_valid_just_before_expiry(self):
        token, claims = create_access_token(1, "a@example.com", set(), now=NOW, expires_delta=timedelta(minutes=5))
        decode_access_token(token, now=claims.exp - timedelta(seconds=1))

    def test_expired_exactly_at_expiry_instant(self):
        token, claims = create_access_token(1, "a@example.com", set(), now=NOW, expires_delta=timedelta(minutes=5))
        with pytest.raises(TokenExpiredException):
            decode_access_token(token, now=claims.exp)

    def test_expired_after_expiry(self):
        token, claims = create_access_token(1, "a@example.com", set(), now=NOW)
        with pytest.raises(TokenExpiredException):
            decode_access_token(token, now=claims.exp + timedelta(hours=1))

    def test_expired_token_is_an_invalid_token(self):
        """Callers that catch InvalidTokenException also catch expiry."""
        assert issubclass(TokenExpiredException, InvalidTokenException)

    def test_not_yet_valid_before_nbf(self):
        token = _forge(_valid_payload(nbf=NOW + timedelta(hours=1), exp=NOW + timedelta(hours=2)))
        with pytest.raises(InvalidTokenException) as exc_info:
            decode_access_token(token, now=NOW)
        assert not isinstance(exc_info.value, TokenExpiredException)

    def test_valid_from_nbf_instant(self):
        token = _forge(_valid_payload(nbf=NOW + timedelta(minutes=1)))
        claims = decode_access_token(token, now=NOW + timedelta(minutes=1))
        assert claims.nbf == NOW + timedelta(minutes=1)

    def test_issued_tokens_are_valid_at_issue_instant(self):
        token, claims = create_access_token(1, "a@example.com", set(), now=NOW)
        assert claims.nbf == NOW
        decode_access_token(token, now=NOW)

    def test_bad_signature(self):
        token = _forge(_valid_payload(), secret="another-secret-key-that-is-long-enough-123")
        with pytest.raises(InvalidTokenException):
            decode_access_token(token, now=NOW)

    def test_tampered_payload(self):
        token, _ = create_access_token(1, "a@example.com", {Role.STUDENT}, now=NOW)
        header, _, signature = token.split(".")
        forged_payload = _forge(_valid_payload(roles=["SUPER_ADMIN"])).split(".")[1]
        with pytest.raises(InvalidTokenException):
            decode_access_token(f"{header}.{forged_payload}.{signature}", now=NOW)

    def test_garbage(self):
        with pytest.raises(InvalidTokenException):
            decode_access_token("this.is.garbage", now=NOW)

    def test_wrong_issuer(self):
        with pytest.raises(InvalidTokenException):
            decode_access_token(_forge(_valid_payload(iss="someone-else")), now=NOW)

    def test_wrong_audience(self):
        with pytest.raises(InvalidTokenException):
            decode_access_token(_forge(_valid_payload(aud="another-app")), now=NOW)

    def test_wrong_token_type(self):
        with pytest.raises(InvalidTokenException):
            decode_access_token(_forge(_valid_payload(type="refresh")), now=NOW)

    def test_unknown_role_is_rejected(self):
        with pytest.raises(InvalidTokenException):
            decode_access_token(_forge(_valid_payload(roles=["CAPTAIN"])), now=NOW)

    def test_missing_subject_is_rejected(self):
        payload = _valid_payload()
        del payload["sub"]
        with pytest.raises(InvalidTokenException):
            decode_access_token(_forge(payload), now=NOW)

    def test_non_numeric_subject_is_rejected(self):
        with pytest.raises(InvalidTokenException):
            decode_access_token(_forge(_valid_payload(sub="not-a-number")), now=NOW)

    def test_externally_signed_token_with_valid_claims_decodes(self):
        claims = decode_access_token(_forge(_valid_payload()), now=NOW)
        assert claims.user_id == 7
        assert claims.roles == frozenset({Role.PILOT})


class TestRefreshTokenValues:
    def test_values_are_long_and_unique(self):
        values = {generate_refresh_token_value() for _ in range(20)}
        assert len(values) == 20
        assert all(len(value) == 128 for value in values)

    def test_hash_is_stable_sha256_hex(self):
        digest = hash_refresh_token("abc")
        assert digest == hash_refresh_token("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_hash_differs_from_value(self):
        value = generate_refresh_token_value()
        assert hash_refresh_token(value) != value
