import json

import pytest

from qrcheckin.models.enums import VerifyOutcome
from qrcheckin.services.token_codec import TokenCodec
from qrcheckin.services.token_verifier import TokenVerifier


def _flip(ch):
    return "A" if ch != "A" else "B"


def _replace_field(token, key, value):
    data = json.loads(token)
    data[key] = value
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def test_round_trip_for_every_registration(issuer, verifier, registrations):
    for registration in registrations:
        result = verifier.verify(issuer.issue(registration.id).token)

        assert result.outcome == VerifyOutcome.SUCCESS
        assert result.registration.id == registration.id
        assert result.via == "token"


def test_jane_doe_scenario(issuer, verifier):
    token = issuer.issue("reg_001").token

    result = verifier.verify(token)
    assert result.success
    assert result.registration.id == "reg_001"

    checksum = json.loads(token)["checksum"]
    tampered = token.replace(f'"checksum":"{checksum}"', f'"checksum":"{_flip(checksum[0]) + checksum[1:]}"')
    assert tampered != token
    assert verifier.verify(tampered).outcome == VerifyOutcome.INTEGRITY_FAILURE


def test_any_checksum_character_flip_fails_integrity(issuer, verifier):
    token = issuer.issue("reg_001").token
    checksum = json.loads(token)["checksum"]

    for i, ch in enumerate(checksum):
        flipped = checksum[:i] + _flip(ch) + checksum[i + 1:]
        result = verifier.verify(_replace_field(token, "checksum", flipped))
        assert result.outcome == VerifyOutcome.INTEGRITY_FAILURE


def test_phone_number_tamper_fails_integrity(issuer, verifier):
    token = issuer.issue("reg_001").token

    result = verifier.verify(_replace_field(token, "phoneNumber", "+1556"))

    assert result.outcome == VerifyOutcome.INTEGRITY_FAILURE


def test_stale_record_is_field_mismatch(issuer, verifier, store, jane):
    token = issuer.issue("reg_001").token
    store.add_registration(jane.model_copy(update={"email_address": "jane.doe@new.example"}))

    result = verifier.verify(token)

    assert result.outcome == VerifyOutcome.FIELD_MISMATCH
    assert result.registration is None


def test_date_of_birth_edit_is_not_cross_checked(issuer, verifier, store, jane):
    token = issuer.issue("reg_001").token
    store.add_registration(jane.model_copy(update={"date_of_birth": "2001-02-02"}))

    assert verifier.verify(token).success


def test_unknown_registration(codec, verifier, jane):
    ghost = jane.model_copy(update={"id": "reg_ghost"})
    token = codec.encode(ghost.token_fields(), 1)

    assert verifier.verify(token).outcome == VerifyOutcome.NOT_FOUND


def test_token_signed_with_other_secret_fails(store, issuer):
    token = issuer.issue("reg_001").token
    other = TokenVerifier(store, TokenCodec("another-secret"))

    assert other.verify(token).outcome == VerifyOutcome.INTEGRITY_FAILURE


def test_surrounding_whitespace_is_trimmed(issuer, verifier):
    token = issuer.issue("reg_001").token
    assert verifier.verify(f"  {token}\n").success


@pytest.mark.parametrize("raw", ["", "   ", "\n\t"])
def test_empty_input_is_parse_failure(verifier, raw):
    assert verifier.verify(raw).outcome == VerifyOutcome.PARSE_FAILURE


def test_bare_id_fallback_skips_checksum(verifier):
    result = verifier.verify("ckv9x2l0s0000abcd1234")

    assert result.outcome == VerifyOutcome.SUCCESS
    assert result.via == "simple_id"
    assert result.registration.full_name == "John Smith"


def test_bare_id_fallback_unknown_id(verifier):
    assert verifier.verify("ckv9x2l0s0000zzzz9999").outcome == VerifyOutcome.NOT_FOUND


@pytest.mark.parametrize("raw", [
    "short",                          # under 10 chars
    "x" * 51,                         # over 50 chars
    "two words here",                 # whitespace
    "{ckv9x2l0s0000abcd1234}",        # braces
])
def test_non_identifiers_are_parse_failures(verifier, raw):
    assert verifier.verify(raw).outcome == VerifyOutcome.PARSE_FAILURE


def test_fallback_can_be_disabled(store, codec):
    strict = TokenVerifier(store, codec, allow_simple_id=False)
    assert strict.verify("ckv9x2l0s0000abcd1234").outcome == VerifyOutcome.PARSE_FAILURE


def test_embedded_id(issuer, verifier):
    token = issuer.issue("reg_001").token

    assert verifier.embedded_id(token) == "reg_001"
    assert verifier.embedded_id("ckv9x2l0s0000abcd1234") == "ckv9x2l0s0000abcd1234"
    assert verifier.embedded_id("no id here") is None
    assert verifier.embedded_id("") is None
