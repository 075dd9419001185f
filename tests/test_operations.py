"""
Tests for the canonical three-operation transfer list.
"""

import pytest

from mochimo_construction.models import MCM_CURRENCY, Operation, OperationType
from mochimo_construction.operations import build_operations, operations_to_wire

SOURCE_TAG = "0x" + "aa" * 12
DEST_TAG = "0x" + "bb" * 12


class TestBuildOperations:
    def test_three_operations_in_index_order(self) -> None:
        ops = build_operations(SOURCE_TAG, DEST_TAG, 10_000, 500, "AB-00-EF")
        assert [op.index for op in ops] == [0, 1, 2]
        assert [op.type for op in ops] == [
            OperationType.SOURCE_TRANSFER,
            OperationType.DESTINATION_TRANSFER,
            OperationType.FEE,
        ]

    @pytest.mark.parametrize("amount,fee", [(0, 0), (1, 0), (10_000, 500), (2**63, 2**40)])
    def test_values(self, amount: int, fee: int) -> None:
        ops = build_operations(SOURCE_TAG, DEST_TAG, amount, fee)
        assert ops[0].value == str(-amount)
        assert ops[1].value == str(amount)
        assert ops[2].value == str(fee)

    def test_accounts(self) -> None:
        ops = build_operations(SOURCE_TAG, DEST_TAG, 1, 1)
        assert ops[0].account_address == SOURCE_TAG
        assert ops[1].account_address == DEST_TAG
        assert ops[2].account_address == SOURCE_TAG

    def test_status_and_currency(self) -> None:
        for op in build_operations(SOURCE_TAG, DEST_TAG, 1, 1):
            assert op.status == "SUCCESS"
            assert op.currency == MCM_CURRENCY

    def test_memo_only_on_destination(self) -> None:
        ops = build_operations(SOURCE_TAG, DEST_TAG, 1, 1, "AB-00-EF")
        assert ops[0].metadata is None
        assert ops[1].metadata == {"memo": "AB-00-EF"}
        assert ops[2].metadata is None

    def test_missing_memo_sent_as_empty_string(self) -> None:
        ops = build_operations(SOURCE_TAG, DEST_TAG, 1, 1)
        assert ops[1].metadata == {"memo": ""}

    def test_negative_amount_rejected(self) -> None:
        with pytest.raises(ValueError, match="amount"):
            build_operations(SOURCE_TAG, DEST_TAG, -1, 0)

    def test_negative_fee_rejected(self) -> None:
        with pytest.raises(ValueError, match="fee"):
            build_operations(SOURCE_TAG, DEST_TAG, 1, -5)


class TestWireFormat:
    def test_wire_shape(self) -> None:
        wire = operations_to_wire(build_operations(SOURCE_TAG, DEST_TAG, 10_000, 500, "AB-00-EF"))
        assert wire[1] == {
            "operation_identifier": {"index": 1},
            "type": "DESTINATION_TRANSFER",
            "status": "SUCCESS",
            "account": {"address": DEST_TAG},
            "amount": {"value": "10000", "currency": {"symbol": "MCM", "decimals": 9}},
            "metadata": {"memo": "AB-00-EF"},
        }
        assert "metadata" not in wire[0]
        assert wire[0]["amount"]["value"] == "-10000"
        assert wire[2]["amount"]["value"] == "500"

    def test_from_dict_reads_wire_form(self) -> None:
        ops = build_operations(SOURCE_TAG, DEST_TAG, 7, 3, "ABC")
        parsed = [Operation.from_dict(d) for d in operations_to_wire(ops)]
        assert parsed == ops

    def test_from_dict_keeps_unknown_type(self) -> None:
        op = Operation.from_dict(
            {
                "operation_identifier": {"index": 0},
                "type": "REWARD",
                "status": "SUCCESS",
                "account": {"address": "0xcc"},
                "amount": {"value": "5", "currency": {"symbol": "MCM", "decimals": 9}},
            }
        )
        assert op.type == "REWARD"
        assert op.amount == 5
