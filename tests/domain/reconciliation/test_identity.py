from __future__ import annotations

from uuid import uuid4

import pytest

from salesquest.domain.model import SellerOrganization
from salesquest.domain.reconciliation import (
    IdentityFailure,
    IdentityMatcher,
    MatchVia,
    normalize_tax_id,
)

STORE = "12345678000190"
HEAD_OFFICE = "98765432000110"


def _org(tax_id: str | None = STORE, parent: str | None = HEAD_OFFICE) -> SellerOrganization:
    return SellerOrganization(organization_id=uuid4(), tax_id=tax_id, parent_tax_id=parent)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.345.678/0001-90", STORE),
        (12345678000190, STORE),
        ("  ", None),
        ("n/a", None),
        (None, None),
    ],
)
def test_normalize_tax_id(raw: object, expected: str | None) -> None:
    assert normalize_tax_id(raw) == expected


def test_direct_match_wins_over_parent() -> None:
    match = IdentityMatcher().matches("12.345.678/0001-90", _org())

    assert match.matched
    assert match.via is MatchVia.DIRECT


def test_parent_match_is_accepted() -> None:
    match = IdentityMatcher().matches(HEAD_OFFICE, _org())

    assert match.matched
    assert match.via is MatchVia.PARENT


@pytest.mark.parametrize(
    ("external", "org", "failure"),
    [
        (STORE, _org(tax_id=None), IdentityFailure.MISSING_ORGANIZATION),
        ("", _org(), IdentityFailure.MISSING_EXTERNAL_ID),
        ("1234", _org(), IdentityFailure.MALFORMED_EXTERNAL_ID),
        ("11111111000111", _org(), IdentityFailure.MISMATCH),
        (HEAD_OFFICE, _org(parent=None), IdentityFailure.MISMATCH),
    ],
)
def test_failures(external: str, org: SellerOrganization, failure: IdentityFailure) -> None:
    match = IdentityMatcher().matches(external, org)

    assert not match.matched
    assert match.via is MatchVia.NONE
    assert match.failure is failure
    assert match.reason


def test_tax_id_length_is_configurable() -> None:
    matcher = IdentityMatcher(tax_id_length=11)

    assert matcher.matches("123.456.789-01", _org(tax_id="12345678901")).matched
    assert matcher.matches(STORE, _org()).failure is IdentityFailure.MALFORMED_EXTERNAL_ID
