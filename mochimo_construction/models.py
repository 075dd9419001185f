"""
Typed records exchanged with the Mochimo Rosetta node.

Each construction step has its own result type so the consumer of a step
relies on named fields instead of an untyped JSON map. Records that are
forwarded verbatim to the next step (preprocess options, construction
metadata) keep the node's original mapping in ``raw`` so unknown keys
survive the round trip.

All records are frozen dataclasses. ``to_dict()`` produces the wire
(JSON) form.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

# Curve / signature type used throughout the Mochimo protocol (WOTS+).
WOTSP = "wotsp"

# Status carried by every operation we construct.
STATUS_SUCCESS = "SUCCESS"


# =========================================================================
# Identifiers and currency
# =========================================================================


@dataclass(frozen=True)
class NetworkIdentifier:
    blockchain: str = "mochimo"
    network: str = "mainnet"

    def to_dict(self) -> dict[str, str]:
        return {"blockchain": self.blockchain, "network": self.network}


@dataclass(frozen=True)
class Currency:
    symbol: str
    decimals: int

    def to_dict(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "decimals": self.decimals}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Currency:
        return cls(symbol=str(data["symbol"]), decimals=int(data["decimals"]))


MCM_CURRENCY = Currency(symbol="MCM", decimals=9)

DEFAULT_NETWORK = NetworkIdentifier()


@dataclass(frozen=True)
class Amount:
    """A signed big-integer value in a currency (``value`` is a string)."""

    value: str
    currency: Currency = MCM_CURRENCY

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "currency": self.currency.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Amount:
        return cls(value=str(data["value"]), currency=Currency.from_dict(data["currency"]))


@dataclass(frozen=True)
class TransactionIdentifier:
    hash: str

    def to_dict(self) -> dict[str, str]:
        return {"hash": self.hash}


@dataclass(frozen=True)
class BlockIdentifier:
    index: int
    hash: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "hash": self.hash}


# =========================================================================
# Operations
# =========================================================================


class OperationType(StrEnum):
    """Accounting effect of an operation. Order in a transfer is fixed."""

    SOURCE_TRANSFER = "SOURCE_TRANSFER"
    DESTINATION_TRANSFER = "DESTINATION_TRANSFER"
    FEE = "FEE"


def _operation_type(value: str) -> OperationType | str:
    # Blocks and mempool may carry types we never construct.
    try:
        return OperationType(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class Operation:
    """One debit, credit or fee within a transaction.

    Attributes:
        index: Position in the operation list (0 source, 1 destination, 2 fee).
        type: OperationType.
        account_address: Tag or address the operation applies to.
        amount: Signed integer amount in nanoMCM (debits are negative).
        currency: Currency of the amount.
        status: Operation status, always SUCCESS for constructed ops.
        metadata: Optional extra fields (destination memo).
    """

    index: int
    type: OperationType | str
    account_address: str
    amount: int
    currency: Currency = MCM_CURRENCY
    status: str = STATUS_SUCCESS
    metadata: dict[str, Any] | None = None

    @property
    def value(self) -> str:
        """Amount as the signed big-integer string sent on the wire."""
        return str(self.amount)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "operation_identifier": {"index": self.index},
            "type": str(self.type),
            "status": self.status,
            "account": {"address": self.account_address},
            "amount": {"value": self.value, "currency": self.currency.to_dict()},
        }
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Operation:
        amount = data.get("amount") or {}
        currency = amount.get("currency")
        return cls(
            index=int(data["operation_identifier"]["index"]),
            type=_operation_type(str(data["type"])),
            account_address=str(data.get("account", {}).get("address", "")),
            amount=int(amount.get("value", "0")),
            currency=Currency.from_dict(currency) if currency else MCM_CURRENCY,
            status=str(data.get("status", STATUS_SUCCESS)),
            metadata=data.get("metadata"),
        )


# =========================================================================
# Keys and signatures
# =========================================================================


@dataclass(frozen=True)
class PublicKey:
    hex_bytes: str
    curve_type: str = WOTSP

    def to_dict(self) -> dict[str, str]:
        return {"hex_bytes": self.hex_bytes, "curve_type": self.curve_type}


@dataclass(frozen=True)
class SigningPayload:
    """Bytes the external wallet must sign. Opaque to this package."""

    hex_bytes: str
    signature_type: str = WOTSP
    account_address: str | None = None


@dataclass(frozen=True)
class Signature:
    """Signature object accepted by ``/construction/combine``.

    Attributes:
        signing_payload_hex: Hex of the signed payload (unsigned tx).
        public_key_hex: Hex of the signer's public key.
        hex_bytes: Hex of the signature bytes.
        signature_type: Always "wotsp".
    """

    signing_payload_hex: str
    public_key_hex: str
    hex_bytes: str
    signature_type: str = WOTSP

    def to_dict(self) -> dict[str, Any]:
        return {
            "signing_payload": {
                "hex_bytes": self.signing_payload_hex,
                "signature_type": self.signature_type,
            },
            "public_key": {
                "hex_bytes": self.public_key_hex,
                "curve_type": self.signature_type,
            },
            "signature_type": self.signature_type,
            "hex_bytes": self.hex_bytes,
        }


# =========================================================================
# Construction step results
# =========================================================================


def _int_field(raw: dict[str, Any], key: str) -> int | None:
    value = raw.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _str_field(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class PreprocessOptions:
    """Options returned by preprocess; forwarded unchanged to metadata.

    ``raw`` is the node's mapping and the only wire form. The typed
    properties are a read-only view and yield None for absent or
    unparseable values.
    """

    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def block_to_live(self) -> int | None:
        return _int_field(self.raw, "block_to_live")

    @property
    def change_pk(self) -> str | None:
        return _str_field(self.raw, "change_pk")

    @property
    def source_addr(self) -> str | None:
        return _str_field(self.raw, "source_addr")

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


@dataclass(frozen=True)
class PreprocessResult:
    options: PreprocessOptions
    required_public_keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConstructionMetadata:
    """Metadata returned by the metadata step; forwarded unchanged to payloads."""

    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def block_to_live(self) -> int | None:
        return _int_field(self.raw, "block_to_live")

    @property
    def change_pk(self) -> str | None:
        return _str_field(self.raw, "change_pk")

    @property
    def source_balance(self) -> int | None:
        return _int_field(self.raw, "source_balance")

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


@dataclass(frozen=True)
class MetadataResult:
    metadata: ConstructionMetadata
    suggested_fee: tuple[Amount, ...] = ()


@dataclass(frozen=True)
class PayloadsResult:
    unsigned_transaction: str
    payloads: tuple[SigningPayload, ...]


@dataclass(frozen=True)
class CombineResult:
    signed_transaction: str


@dataclass(frozen=True)
class ParseResult:
    operations: tuple[Operation, ...]
    signers: tuple[str, ...] = ()
    metadata: dict[str, Any] | None = None


# =========================================================================
# Data API results
# =========================================================================


@dataclass(frozen=True)
class MempoolTransaction:
    """A transaction observed in the node's mempool."""

    transaction_identifier: TransactionIdentifier
    operations: tuple[Operation, ...] = ()
    metadata: dict[str, Any] | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AccountBalance:
    balances: tuple[Amount, ...]
    block_identifier: BlockIdentifier


@dataclass(frozen=True)
class TagResolution:
    """Result of ``tag_resolve``: the full address behind a tag."""

    address: str
    amount: str
    idempotent: bool = False


# =========================================================================
# Transfer intent
# =========================================================================


@dataclass(frozen=True)
class TransferIntent:
    """Everything the caller knows about a transfer before construction.

    Attributes:
        source_tag: Hex tag of the source account (debit and fee account).
        source_address: Hex WOTS+ address of the source (raw tx only).
        destination_tag: Hex tag of the destination account.
        amount: Amount in nanoMCM.
        fee: Fee in nanoMCM.
        public_key: Hex WOTS+ public key of the source.
        change_pk: Hex change public-key hash.
        memo: Optional destination memo.
        block_to_live: Expiry block height (0 = none).
        source_balance: Known source balance. Defaults to amount + fee.
    """

    source_tag: str
    source_address: str
    destination_tag: str
    amount: int
    fee: int
    public_key: str
    change_pk: str
    memo: str | None = None
    block_to_live: int = 0
    source_balance: int | None = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got: {self.amount}")
        if self.fee < 0:
            raise ValueError(f"fee must be non-negative, got: {self.fee}")
        if self.block_to_live < 0:
            raise ValueError(f"block_to_live must be non-negative, got: {self.block_to_live}")

    @property
    def effective_source_balance(self) -> int:
        if self.source_balance is not None:
            return self.source_balance
        return self.amount + self.fee
