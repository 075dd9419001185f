"""
Mochimo memo (MDST reference field) codec.

A memo is a short human-readable reference attached to the destination
credit of a transfer.

Grammar:
    - The empty string is valid (encodes to an all-zero field).
    - Only uppercase [A-Z], digits [0-9] and dash [-].
    - Cannot start or end with a dash.
    - Dash-separated groups are non-empty and either all letters or all
      digits, never mixed.
    - Adjacent groups alternate class: letters never follow letters,
      digits never follow digits.

    Valid:   "AB-00-EF", "123-CDE-789", "ABC", "123"
    Invalid: "AB-CD-EF", "123-456-789", "ABC-", "-123", "AB--12"

Encoding (16-byte field):
    ASCII bytes from offset 0, truncated to 15, followed by one zero
    terminator; the remaining bytes are zero.

``format_memo`` is lenient: invalid input silently yields the zero
field. ``format_memo_strict`` raises InvalidMemoError instead.

This field is NOT the memo slot of the raw transaction buffer, which
carries up to 32 raw unvalidated ASCII bytes (see tx.py). The two
encodings are kept separate on purpose.
"""

from __future__ import annotations

import re

from mochimo_construction.errors import InvalidMemoError

# Size of the encoded memo field in bytes.
MEMO_FIELD_SIZE = 16

# Maximum memo characters copied (one byte is reserved for the terminator).
MAX_MEMO_CHARS = MEMO_FIELD_SIZE - 1

_CHARSET_RE = re.compile(r"^[A-Z0-9-]+$")
_LETTERS_RE = re.compile(r"^[A-Z]+$")
_DIGITS_RE = re.compile(r"^[0-9]+$")


def is_valid_memo(memo: str) -> bool:
    """Check a memo against the MDST reference grammar.

    Args:
        memo: Memo string. Empty is valid.

    Returns:
        True if the memo is well-formed.
    """
    if not memo:
        return True
    if not _CHARSET_RE.match(memo):
        return False
    if memo.startswith("-") or memo.endswith("-"):
        return False

    prev_is_letters: bool | None = None
    for group in memo.split("-"):
        if not group:
            return False
        is_letters = bool(_LETTERS_RE.match(group))
        if not is_letters and not _DIGITS_RE.match(group):
            return False
        if prev_is_letters is not None and is_letters == prev_is_letters:
            return False
        prev_is_letters = is_letters

    return True


def _encode(memo: str) -> bytes:
    field = bytearray(MEMO_FIELD_SIZE)
    memo_bytes = memo.encode("ascii")[:MAX_MEMO_CHARS]
    field[: len(memo_bytes)] = memo_bytes
    # Terminator at field[len(memo_bytes)] is already zero.
    return bytes(field)


def format_memo(memo: str | None) -> bytes:
    """Encode a memo into its 16-byte field, degrading invalid input to zeros.

    Args:
        memo: Memo string (None treated as empty).

    Returns:
        16 bytes. All zero when the memo is empty or invalid.
    """
    if not memo or not is_valid_memo(memo):
        return bytes(MEMO_FIELD_SIZE)
    return _encode(memo)


def format_memo_strict(memo: str | None) -> bytes:
    """Encode a memo into its 16-byte field, rejecting invalid input.

    Raises:
        InvalidMemoError: If the memo violates the grammar.
    """
    if not memo:
        return bytes(MEMO_FIELD_SIZE)
    if not is_valid_memo(memo):
        raise InvalidMemoError(f"invalid memo: {memo!r}", details={"memo": memo})
    return _encode(memo)
