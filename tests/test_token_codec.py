import json

import pytest

from qrcheckin.models.schemas import TokenFields
from qrcheckin.services.token_codec import TokenCodec, to_base36, utf16_code_unit_sum
from qrcheckin.utils.exceptions import TokenParseError

from .conftest import ISSUED_AT, SECRET


def test_base36_rendering():
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"
    assert to_base36(1295) == "ZZ"


def test_utf16_sum_counts_surrogate_pairs():
    assert utf16_code_unit_sum("AB") == 65 + 66
    # U+1F600 is stored as the pair D83D DE00
    assert utf16_code_unit_sum("\U0001F600") == 0xD83D + 0xDE00


def test_checksum_known_value():
    fields = TokenFields(id="a", full_name="a", gender="a", date_of_birth="a", phone_number="a", email_address="a")
    # "a:a:a:a:a:a:1:s" sums to 6*97 + 7*58 + 49 + 115 = 1152 = 32*36
    assert TokenCodec("s").compute_checksum(fields, 1) == "W0"


def test_checksum_is_additive_sum_of_canonical_string(codec, jane):
    canonical = f"reg_001:Jane Doe:Female:2001-01-01:+1555:jane@x.com:{ISSUED_AT}:{SECRET}"
    assert codec.canonical_string(jane.token_fields(), ISSUED_AT) == canonical

    checksum = codec.compute_checksum(jane.token_fields(), ISSUED_AT)
    assert checksum == checksum.upper()
    assert int(checksum, 36) == sum(ord(ch) for ch in canonical)


def test_checksum_depends_on_secret(jane):
    fields = jane.token_fields()
    assert TokenCodec("one").compute_checksum(fields, ISSUED_AT) != TokenCodec("two").compute_checksum(fields, ISSUED_AT)


def test_encode_produces_compact_json_in_field_order(codec, jane):
    token = codec.encode(jane.token_fields(), ISSUED_AT)

    assert " " not in token.replace("Jane Doe", "")
    assert list(json.loads(token)) == [
        "id", "fullName", "gender", "dateOfBirth", "phoneNumber", "emailAddress", "issuedAt", "checksum",
    ]
    assert json.loads(token)["issuedAt"] == ISSUED_AT


def test_encode_keeps_non_ascii_verbatim(codec, registrations):
    zoe = registrations[2]
    token = codec.encode(zoe.token_fields(), ISSUED_AT)
    assert "Zoë Ådahl-Nkemelu" in token


def test_decode_round_trip(codec, jane):
    payload = codec.decode(codec.encode(jane.token_fields(), ISSUED_AT))

    assert payload.id == "reg_001"
    assert payload.full_name == "Jane Doe"
    assert payload.issued_at == ISSUED_AT
    assert codec.verify_checksum(payload)


def test_decode_accepts_legacy_timestamp_key(codec, jane):
    data = json.loads(codec.encode(jane.token_fields(), ISSUED_AT))
    data["timestamp"] = data.pop("issuedAt")

    payload = codec.decode(json.dumps(data))

    assert payload.issued_at == ISSUED_AT
    assert codec.verify_checksum(payload)


@pytest.mark.parametrize("raw", ["not json", "[1, 2, 3]", '"reg_001"', "42", "{"])
def test_decode_rejects_non_objects(codec, raw):
    with pytest.raises(TokenParseError):
        codec.decode(raw)


def test_decode_rejects_missing_field(codec, jane):
    data = json.loads(codec.encode(jane.token_fields(), ISSUED_AT))
    del data["emailAddress"]

    with pytest.raises(TokenParseError, match="emailAddress"):
        codec.decode(json.dumps(data))


def test_decode_rejects_mistyped_field(codec, jane):
    data = json.loads(codec.encode(jane.token_fields(), ISSUED_AT))
    data["phoneNumber"] = 1555

    with pytest.raises(TokenParseError, match="invalid registration data: phoneNumber"):
        codec.decode(json.dumps(data))


def test_decode_reports_mistyped_and_missing_fields_apart(codec, jane):
    data = json.loads(codec.encode(jane.token_fields(), ISSUED_AT))
    data["issuedAt"] = str(data["issuedAt"])

    with pytest.raises(TokenParseError, match="invalid registration data: issuedAt"):
        codec.decode(json.dumps(data))

    del data["issuedAt"]
    with pytest.raises(TokenParseError, match="missing required registration data: issuedAt"):
        codec.decode(json.dumps(data))


def test_verify_checksum_detects_edit(codec, jane):
    payload = codec.decode(codec.encode(jane.token_fields(), ISSUED_AT))
    edited = payload.model_copy(update={"gender": "Male"})

    assert not codec.verify_checksum(edited)
