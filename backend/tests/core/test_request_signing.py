"""Bot Request Signing — HMAC verification is fail-closed.

Tests:
    - A freshly signed request verifies to its principal
    - Stale (>60s), future (>5s), tampered and malformed requests return None
    - Missing or placeholder secrets reject everything
    - Signatures that differ early vs late take comparable time (loose check)
"""

import statistics
import time

import pytest

from taskhub.core.request_signing import (
    BotSignatureHeaders,
    compute_signature,
    sign_bot_request,
    verify_bot_request,
)

SECRET = "unit-test-secret"
PRINCIPAL = "123456789012345678"
NOW = 1_700_000_000_000


def _signed(timestamp_ms: int = NOW) -> BotSignatureHeaders:
    return sign_bot_request(PRINCIPAL, SECRET, timestamp_ms=timestamp_ms)


def test_valid_signature_returns_principal():
    assert verify_bot_request(_signed(), SECRET, now_ms=NOW) == PRINCIPAL


def test_signature_is_hmac_over_principal_and_timestamp():
    headers = _signed()
    assert headers.signature == compute_signature(SECRET, PRINCIPAL, str(NOW))
    assert len(headers.signature) == 64


def test_request_61_seconds_old_is_rejected():
    assert verify_bot_request(_signed(NOW - 61_000), SECRET, now_ms=NOW) is None


def test_request_within_window_is_accepted():
    assert verify_bot_request(_signed(NOW - 59_000), SECRET, now_ms=NOW) == PRINCIPAL


def test_future_timestamp_beyond_skew_is_rejected():
    assert verify_bot_request(_signed(NOW + 6_000), SECRET, now_ms=NOW) is None
    assert verify_bot_request(_signed(NOW + 4_000), SECRET, now_ms=NOW) == PRINCIPAL


def test_tampered_principal_is_rejected():
    headers = _signed()
    forged = BotSignatureHeaders("999999999999999999", headers.timestamp, headers.signature)
    assert verify_bot_request(forged, SECRET, now_ms=NOW) is None


def test_wrong_secret_is_rejected():
    assert verify_bot_request(_signed(), "other-secret", now_ms=NOW) is None


@pytest.mark.parametrize("secret", [None, "", "your-secret-here"])
def test_unconfigured_secret_rejects(secret):
    assert verify_bot_request(_signed(), secret, now_ms=NOW) is None


def test_missing_headers_rejected():
    headers = _signed()
    assert verify_bot_request(
        BotSignatureHeaders(PRINCIPAL, headers.timestamp, None), SECRET, now_ms=NOW,
    ) is None
    assert verify_bot_request(
        BotSignatureHeaders(None, headers.timestamp, headers.signature), SECRET, now_ms=NOW,
    ) is None


def test_non_numeric_timestamp_rejected():
    headers = BotSignatureHeaders(PRINCIPAL, "yesterday", "a" * 64)
    assert verify_bot_request(headers, SECRET, now_ms=NOW) is None


def test_bad_signature_shapes_rejected():
    headers = _signed()
    short = BotSignatureHeaders(PRINCIPAL, headers.timestamp, headers.signature[:-2])
    not_hex = BotSignatureHeaders(PRINCIPAL, headers.timestamp, "z" * 64)
    assert verify_bot_request(short, SECRET, now_ms=NOW) is None
    assert verify_bot_request(not_hex, SECRET, now_ms=NOW) is None


def test_headers_roundtrip_through_mapping():
    headers = sign_bot_request(PRINCIPAL, SECRET, timestamp_ms=NOW, username="neo")
    parsed = BotSignatureHeaders.from_mapping(headers.as_headers())
    assert parsed == headers


def test_comparison_time_does_not_depend_on_mismatch_position():
    good = _signed().signature
    first = ("0" if good[0] != "0" else "1") + good[1:]
    last = good[:-1] + ("0" if good[-1] != "0" else "1")

    def measure(signature: str) -> float:
        headers = BotSignatureHeaders(PRINCIPAL, str(NOW), signature)
        samples = []
        for _ in range(200):
            start = time.perf_counter()
            verify_bot_request(headers, SECRET, now_ms=NOW)
            samples.append(time.perf_counter() - start)
        return statistics.median(samples)

    early, late = measure(first), measure(last)
    assert max(early, late) / min(early, late) < 3


@pytest.mark.parametrize("position", range(64))
def test_any_single_changed_character_fails(position):
    good = _signed().signature
    replacement = "0" if good[position] != "0" else "f"
    tampered = good[:position] + replacement + good[position + 1:]
    headers = BotSignatureHeaders(PRINCIPAL, str(NOW), tampered)
    assert verify_bot_request(headers, SECRET, now_ms=NOW) is None
