from __future__ import annotations

from uuid import uuid4

from salesquest.domain.model import Condition, ConditionOperator, Requirement
from salesquest.domain.reconciliation import ColumnMapping, MultiSlotReallocator

MAPPING = ColumnMapping({"PRODUCT": "Product"})
CAMPAIGN_ID = uuid4()


def _requirement(tier: int, slot: int, product: str) -> Requirement:
    return Requirement(
        campaign_id=CAMPAIGN_ID,
        tier_number=tier,
        slot_order=slot,
        target_quantity=1,
        description=f"{product} slot",
        conditions=[
            Condition(field="PRODUCT", operator=ConditionOperator.EQUALS, expected_value=product)
        ],
    )


def test_first_matching_sibling_in_slot_order_wins() -> None:
    declared = _requirement(1, 1, "TV")
    later = _requirement(1, 3, "Phone")
    earlier = _requirement(1, 2, "Phone")

    result = MultiSlotReallocator().try_reassign(
        {"Product": "Phone"}, declared, [later, earlier], MAPPING
    )

    assert result.succeeded
    assert result.requirement is earlier
    assert result.attempt_log == ()


def test_other_tiers_are_never_considered() -> None:
    declared = _requirement(1, 1, "TV")
    next_tier = _requirement(2, 2, "Phone")

    result = MultiSlotReallocator().try_reassign(
        {"Product": "Phone"}, declared, [next_tier, declared], MAPPING
    )

    assert not result.succeeded
    assert result.attempt_log == ()


def test_failed_attempts_are_logged_in_order() -> None:
    declared = _requirement(1, 1, "TV")
    phone = _requirement(1, 2, "Phone")
    tablet = _requirement(1, 3, "Tablet")

    result = MultiSlotReallocator().try_reassign(
        {"Product": "Fridge"}, declared, [tablet, phone], MAPPING
    )

    assert not result.succeeded
    assert len(result.attempt_log) == 2
    assert result.attempt_log[0].startswith("Phone slot: ")
    assert result.attempt_log[1].startswith("Tablet slot: ")
    assert result.joined_log("Declared slot: no match") == " | ".join(
        ("Declared slot: no match", *result.attempt_log)
    )
