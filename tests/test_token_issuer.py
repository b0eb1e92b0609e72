import json

import pytest

from qrcheckin.services.registration_store import InMemoryRegistrationStore
from qrcheckin.services.token_issuer import TokenIssuer
from qrcheckin.utils.exceptions import RegistrationNotFoundError

from .conftest import ISSUED_AT

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def test_issue_persists_token_and_renders_png(issuer, store):
    issued = issuer.issue("reg_001")

    assert issued.registration_id == "reg_001"
    assert issued.image.startswith(PNG_MAGIC)
    assert store.get_registration("reg_001").token == issued.token

    payload = json.loads(issued.token)
    assert payload["id"] == "reg_001"
    assert payload["emailAddress"] == "jane@x.com"
    assert payload["issuedAt"] == ISSUED_AT


def test_issue_unknown_registration(issuer):
    with pytest.raises(RegistrationNotFoundError) as excinfo:
        issuer.issue("reg_missing")
    assert excinfo.value.registration_id == "reg_missing"


def test_reissue_overwrites_previous_token(issuer, store, verifier):
    first = issuer.issue("reg_001")
    second = issuer.issue("reg_001")

    assert first.token != second.token
    assert store.get_registration("reg_001").token == second.token
    # superseded but still self-consistent while the record is unchanged
    assert verifier.verify(first.token).success


def test_issue_missing_skips_registrations_with_tokens(issuer, store):
    issuer.issue("reg_001")

    summary = issuer.issue_missing()

    assert summary.generated == 2
    assert summary.errors == 0
    assert store.list_missing_tokens() == []


class FlakyStore(InMemoryRegistrationStore):
    def set_token(self, registration_id, token):
        if registration_id == "reg_unicode_003":
            raise RuntimeError("write failed")
        super().set_token(registration_id, token)


def test_issue_missing_counts_failures_and_continues(registrations, codec, renderer, issue_clock):
    store = FlakyStore(registrations)
    issuer = TokenIssuer(store, codec, renderer, clock=issue_clock)

    summary = issuer.issue_missing()

    assert summary.generated == 2
    assert summary.errors == 1
    assert store.list_missing_tokens() == ["reg_unicode_003"]
