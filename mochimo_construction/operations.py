"""
Canonical operation list for a Mochimo transfer.

Every transfer is exactly three operations, in this order:

    0  SOURCE_TRANSFER       source tag       -amount
    1  DESTINATION_TRANSFER  destination tag  +amount   metadata.memo
    2  FEE                   source tag       +fee

The node's construction endpoints are order-sensitive: no index may be
omitted or reordered.
"""

from __future__ import annotations

from typing import Any

from mochimo_construction.models import (
    MCM_CURRENCY,
    Operation,
    OperationType,
)


def build_operations(
    source_tag: str,
    destination_tag: str,
    amount: int,
    fee: int,
    memo: str | None = None,
) -> list[Operation]:
    """Build the debit, credit and fee operations of a transfer.

    Args:
        source_tag: Account debited for amount and fee.
        destination_tag: Account credited with amount.
        amount: Non-negative transfer amount in nanoMCM.
        fee: Non-negative fee in nanoMCM.
        memo: Destination memo. Sent as "" when absent.

    Returns:
        Three operations, indices 0, 1, 2.

    Raises:
        ValueError: If amount or fee is negative.
    """
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got: {amount}")
    if fee < 0:
        raise ValueError(f"fee must be non-negative, got: {fee}")

    return [
        Operation(
            index=0,
            type=OperationType.SOURCE_TRANSFER,
            account_address=source_tag,
            amount=-amount,
            currency=MCM_CURRENCY,
        ),
        Operation(
            index=1,
            type=OperationType.DESTINATION_TRANSFER,
            account_address=destination_tag,
            amount=amount,
            currency=MCM_CURRENCY,
            metadata={"memo": memo or ""},
        ),
        Operation(
            index=2,
            type=OperationType.FEE,
            account_address=source_tag,
            amount=fee,
            currency=MCM_CURRENCY,
        ),
    ]


def operations_to_wire(operations: list[Operation]) -> list[dict[str, Any]]:
    """Serialize operations to the Rosetta JSON list, preserving order."""
    return [op.to_dict() for op in operations]
