"""
Tests for the 2304-byte raw transaction encoder.

Test plan:
- Size: always TX_SIZE
- Layout: version, addresses, amount/fee/block-to-live at fixed offsets,
  little-endian
- Hex: 0x and bare input produce identical bytes, short hex zero-padded,
  long or malformed hex rejected
- Memo: raw bytes at offset 144, truncated to 32, independent of the
  16-byte MDST field
- Ranges: negative and oversized integers rejected
"""

import struct

import pytest

from mochimo_construction.memo import format_memo
from mochimo_construction.tx import (
    ADDRESS_SLOT,
    AMOUNT_OFFSET,
    BLOCK_TO_LIVE_OFFSET,
    CHANGE_PK_OFFSET,
    DESTINATION_TAG_OFFSET,
    FEE_OFFSET,
    MEMO_OFFSET,
    MEMO_SLOT,
    SOURCE_ADDRESS_OFFSET,
    TX_SIZE,
    encode_transaction,
    strip_hex_prefix,
)

SOURCE = "11" * 40
CHANGE = "22" * 40
DEST = "33" * 12


def _encode(**overrides: object) -> bytes:
    kwargs: dict[str, object] = {
        "source_address": SOURCE,
        "destination_tag": DEST,
        "amount": 10_000,
        "fee": 500,
        "change_pk": CHANGE,
        "block_to_live": 0,
    }
    kwargs.update(overrides)
    return encode_transaction(**kwargs)  # type: ignore[arg-type]


class TestLayout:
    def test_size_is_fixed(self) -> None:
        assert len(_encode()) == TX_SIZE == 2304

    def test_size_independent_of_memo(self) -> None:
        assert len(_encode(memo="X" * 100)) == TX_SIZE

    def test_version_is_zero(self) -> None:
        assert struct.unpack_from("<I", _encode(), 0)[0] == 0

    def test_source_address_slot(self) -> None:
        buf = _encode()
        assert buf[SOURCE_ADDRESS_OFFSET : SOURCE_ADDRESS_OFFSET + ADDRESS_SLOT] == bytes.fromhex(SOURCE)

    def test_change_pk_slot(self) -> None:
        buf = _encode()
        assert buf[CHANGE_PK_OFFSET : CHANGE_PK_OFFSET + ADDRESS_SLOT] == bytes.fromhex(CHANGE)

    def test_short_destination_tag_is_zero_padded(self) -> None:
        buf = _encode()
        slot = buf[DESTINATION_TAG_OFFSET : DESTINATION_TAG_OFFSET + ADDRESS_SLOT]
        assert slot[:12] == bytes.fromhex(DEST)
        assert slot[12:] == bytes(28)

    def test_amount_and_fee_little_endian_u64(self) -> None:
        buf = _encode(amount=0x0102030405060708, fee=500)
        assert struct.unpack_from("<Q", buf, AMOUNT_OFFSET)[0] == 0x0102030405060708
        assert buf[AMOUNT_OFFSET] == 0x08
        assert struct.unpack_from("<Q", buf, FEE_OFFSET)[0] == 500

    def test_block_to_live_u32(self) -> None:
        buf = _encode(block_to_live=123456)
        assert struct.unpack_from("<I", buf, BLOCK_TO_LIVE_OFFSET)[0] == 123456

    def test_max_values_fit(self) -> None:
        buf = _encode(amount=2**64 - 1, fee=2**64 - 1, block_to_live=2**32 - 1)
        assert struct.unpack_from("<Q", buf, AMOUNT_OFFSET)[0] == 2**64 - 1
        assert struct.unpack_from("<I", buf, BLOCK_TO_LIVE_OFFSET)[0] == 2**32 - 1

    def test_tail_is_zero(self) -> None:
        buf = _encode(memo="AB-00-EF")
        assert buf[MEMO_OFFSET + MEMO_SLOT :] == bytes(TX_SIZE - MEMO_OFFSET - MEMO_SLOT)


class TestHexFields:
    def test_prefixed_and_bare_hex_identical(self) -> None:
        bare = _encode()
        prefixed = _encode(
            source_address="0x" + SOURCE,
            destination_tag="0x" + DEST,
            change_pk="0x" + CHANGE,
        )
        assert bare == prefixed

    def test_strip_hex_prefix(self) -> None:
        assert strip_hex_prefix("0xabcd") == "abcd"
        assert strip_hex_prefix("abcd") == "abcd"

    def test_oversized_hex_rejected(self) -> None:
        with pytest.raises(ValueError, match="destination_tag exceeds"):
            _encode(destination_tag="ab" * 41)

    def test_malformed_hex_rejected(self) -> None:
        with pytest.raises(ValueError, match="source_address is not valid hex"):
            _encode(source_address="zz")


class TestMemoSlot:
    def test_memo_copied_raw(self) -> None:
        buf = _encode(memo="AB-00-EF")
        assert buf[MEMO_OFFSET : MEMO_OFFSET + 8] == b"AB-00-EF"
        assert buf[MEMO_OFFSET + 8 : MEMO_OFFSET + MEMO_SLOT] == bytes(24)

    def test_memo_not_validated(self) -> None:
        buf = _encode(memo="lower case")
        assert buf[MEMO_OFFSET : MEMO_OFFSET + 10] == b"lower case"

    def test_memo_truncated_to_32(self) -> None:
        buf = _encode(memo="A" * 40)
        assert buf[MEMO_OFFSET : MEMO_OFFSET + MEMO_SLOT] == b"A" * 32
        assert buf[MEMO_OFFSET + MEMO_SLOT] == 0

    def test_no_memo_leaves_slot_zero(self) -> None:
        assert _encode()[MEMO_OFFSET : MEMO_OFFSET + MEMO_SLOT] == bytes(MEMO_SLOT)

    def test_raw_slot_differs_from_mdst_field(self) -> None:
        # 17 chars: the raw slot keeps all of them, the MDST field only 15.
        memo = "AB-12-CD-34-EF-56"
        buf = _encode(memo=memo)
        assert buf[MEMO_OFFSET : MEMO_OFFSET + len(memo)] == memo.encode()
        assert format_memo(memo)[:15] == memo.encode()[:15]
        assert format_memo(memo)[15] == 0


class TestRanges:
    @pytest.mark.parametrize(
        "field,value",
        [("amount", -1), ("fee", -1), ("amount", 2**64), ("block_to_live", 2**32)],
    )
    def test_out_of_range_rejected(self, field: str, value: int) -> None:
        with pytest.raises(ValueError, match=f"{field} out of range"):
            _encode(**{field: value})
