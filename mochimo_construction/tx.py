"""
Mochimo raw transaction encoder.

Serializes transfer parameters into the fixed 2304-byte transaction
record used for hashing and signing. Pure, deterministic, no network.

Layout (little-endian, all unwritten bytes zero):

    offset  length  field
    0       4       version (u32, always 0)
    4       40      source address
    44      40      change public-key hash
    84      40      destination tag
    124     8       amount (u64)
    132     8       fee (u64)
    140     4       block-to-live (u32)
    144     32      memo (raw ASCII, unvalidated, truncated to 32)
    176     2128    unused tail

Hex fields accept an optional ``0x`` prefix. A hex field shorter than
its slot is zero-padded on the right; a longer one is rejected.

The memo slot here is 32 raw bytes and is independent of the 16-byte
MDST memo field produced by memo.py.
"""

from __future__ import annotations

import struct

# Total size of a raw transaction record.
TX_SIZE = 2304

TX_VERSION = 0

VERSION_OFFSET = 0
SOURCE_ADDRESS_OFFSET = 4
CHANGE_PK_OFFSET = 44
DESTINATION_TAG_OFFSET = 84
AMOUNT_OFFSET = 124
FEE_OFFSET = 132
BLOCK_TO_LIVE_OFFSET = 140
MEMO_OFFSET = 144

# Slot widths.
ADDRESS_SLOT = 40
MEMO_SLOT = 32

_U32_MAX = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF


def strip_hex_prefix(value: str) -> str:
    """Remove a leading ``0x`` if present."""
    return value[2:] if value.startswith("0x") else value


def _hex_field(name: str, value: str) -> bytes:
    try:
        raw = bytes.fromhex(strip_hex_prefix(value))
    except ValueError as exc:
        raise ValueError(f"{name} is not valid hex: {value!r}") from exc
    if len(raw) > ADDRESS_SLOT:
        raise ValueError(
            f"{name} exceeds {ADDRESS_SLOT} bytes (got {len(raw)} bytes)"
        )
    return raw


def _check_range(name: str, value: int, upper: int) -> None:
    if value < 0 or value > upper:
        raise ValueError(f"{name} out of range: {value}")


def encode_transaction(
    source_address: str,
    destination_tag: str,
    amount: int,
    fee: int,
    change_pk: str,
    block_to_live: int,
    memo: str | None = None,
) -> bytes:
    """Build the 2304-byte raw transaction record.

    Args:
        source_address: Hex source address (optional ``0x``).
        destination_tag: Hex destination tag (optional ``0x``).
        amount: Transfer amount in nanoMCM (u64).
        fee: Fee in nanoMCM (u64).
        change_pk: Hex change public-key hash (optional ``0x``).
        block_to_live: Block height after which the tx expires (u32).
        memo: Optional memo, copied as raw bytes (max 32).

    Returns:
        Immutable 2304-byte record.

    Raises:
        ValueError: If a hex field is malformed or too long, or an
            integer does not fit its field.
    """
    _check_range("amount", amount, _U64_MAX)
    _check_range("fee", fee, _U64_MAX)
    _check_range("block_to_live", block_to_live, _U32_MAX)

    source = _hex_field("source_address", source_address)
    change = _hex_field("change_pk", change_pk)
    destination = _hex_field("destination_tag", destination_tag)

    buf = bytearray(TX_SIZE)
    struct.pack_into("<I", buf, VERSION_OFFSET, TX_VERSION)
    buf[SOURCE_ADDRESS_OFFSET : SOURCE_ADDRESS_OFFSET + len(source)] = source
    buf[CHANGE_PK_OFFSET : CHANGE_PK_OFFSET + len(change)] = change
    buf[DESTINATION_TAG_OFFSET : DESTINATION_TAG_OFFSET + len(destination)] = destination
    struct.pack_into("<Q", buf, AMOUNT_OFFSET, amount)
    struct.pack_into("<Q", buf, FEE_OFFSET, fee)
    struct.pack_into("<I", buf, BLOCK_TO_LIVE_OFFSET, block_to_live)

    if memo:
        memo_bytes = memo.encode("utf-8")[:MEMO_SLOT]
        buf[MEMO_OFFSET : MEMO_OFFSET + len(memo_bytes)] = memo_bytes

    return bytes(buf)
