"""Organization identity matching by normalised tax id."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from salesquest.domain.reconciliation.contracts import IdentityFailure, IdentityMatch, MatchVia

if TYPE_CHECKING:
    from salesquest.domain.model import SellerOrganization

DEFAULT_TAX_ID_LENGTH: Final[int] = 14

_NON_DIGITS = re.compile(r"\D")


def normalize_tax_id(value: object) -> str | None:
    """Strip every non-digit; blank results read as missing.

    >>> normalize_tax_id("12.345.678/0001-90")
    '12345678000190'
    """

    if value is None:
        return None
    digits = _NON_DIGITS.sub("", str(value))
    return digits or None


class IdentityMatcher:
    """Accept an external record when its tax id is the seller's store or its head office."""

    def __init__(self, *, tax_id_length: int = DEFAULT_TAX_ID_LENGTH) -> None:
        self.tax_id_length = tax_id_length

    def matches(self, external_org_id: object, seller_org: SellerOrganization) -> IdentityMatch:
        own = normalize_tax_id(seller_org.tax_id)
        if own is None:
            return _failure(
                IdentityFailure.MISSING_ORGANIZATION,
                "Seller is not attached to an organization with a registered tax id",
            )

        external = normalize_tax_id(external_org_id)
        if external is None:
            return _failure(
                IdentityFailure.MISSING_EXTERNAL_ID,
                "Organization identifier missing or empty in the external record",
            )
        if len(external) != self.tax_id_length:
            return _failure(
                IdentityFailure.MALFORMED_EXTERNAL_ID,
                f"Invalid identifier '{external}': expected {self.tax_id_length} digits",
            )

        if external == own:
            return IdentityMatch(matched=True, via=MatchVia.DIRECT)

        parent = normalize_tax_id(seller_org.parent_tax_id)
        if parent is not None and external == parent:
            return IdentityMatch(matched=True, via=MatchVia.PARENT)

        return _failure(
            IdentityFailure.MISMATCH,
            f"Organization identifier {external} matches neither the seller's organization "
            f"({own}) nor its parent ({parent or 'N/A'})",
        )


def _failure(failure: IdentityFailure, reason: str) -> IdentityMatch:
    return IdentityMatch(matched=False, via=MatchVia.NONE, failure=failure, reason=reason)
