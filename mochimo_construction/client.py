"""
Mochimo Rosetta client: stateless wrapper around the node's JSON endpoints.

Every call is an HTTP POST to ``{base_url}{path}`` whose body always
includes ``network_identifier``. Responses are parsed into the typed
records of models.py by pure functions (no I/O) at the bottom of this
module.

Error handling:
    - A response carrying a ``code`` field is a Rosetta error envelope
      and raises RosettaApiError with the server's message. Never retried.
    - A response missing a required field raises MalformedResponseError.
    - Transport exceptions propagate to the caller unchanged.

The only state is the base URL, network identifier and transport, so one
client instance can serve any number of concurrent builds.
"""

from __future__ import annotations

import logging
from typing import Any

from mochimo_construction.config import ClientConfig, MonitorPolicy
from mochimo_construction.errors import (
    MalformedResponseError,
    RosettaApiError,
    TransactionNotFoundError,
)
from mochimo_construction.models import (
    DEFAULT_NETWORK,
    WOTSP,
    AccountBalance,
    Amount,
    BlockIdentifier,
    CombineResult,
    ConstructionMetadata,
    MempoolTransaction,
    MetadataResult,
    NetworkIdentifier,
    Operation,
    ParseResult,
    PayloadsResult,
    PreprocessOptions,
    PreprocessResult,
    PublicKey,
    Signature,
    SigningPayload,
    TagResolution,
    TransactionIdentifier,
)
from mochimo_construction.monitor import MempoolMonitor
from mochimo_construction.transport import HttpxTransport, JsonTransport

# Endpoint paths.
PATH_DERIVE = "/construction/derive"
PATH_PREPROCESS = "/construction/preprocess"
PATH_METADATA = "/construction/metadata"
PATH_PAYLOADS = "/construction/payloads"
PATH_COMBINE = "/construction/combine"
PATH_SUBMIT = "/construction/submit"
PATH_PARSE = "/construction/parse"
PATH_BALANCE = "/account/balance"
PATH_BLOCK = "/block"
PATH_NETWORK_STATUS = "/network/status"
PATH_MEMPOOL = "/mempool"
PATH_MEMPOOL_TX = "/mempool/transaction"
PATH_CALL = "/call"

TAG_RESOLVE_METHOD = "tag_resolve"


class ConstructionClient:
    """Rosetta Construction + Data API client for a Mochimo node.

    Args:
        base_url: Node base URL (e.g. "http://localhost:8080").
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport. Pass a FakeTransport for testing.
        network: Network identifier sent with every request.
        monitor_policy: Default polling policy for wait_for_transaction().
        logger: Logger for request/response diagnostics.
    """

    def __init__(
        self,
        base_url: str,
        transport: JsonTransport | None = None,
        *,
        network: NetworkIdentifier = DEFAULT_NETWORK,
        monitor_policy: MonitorPolicy | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport or HttpxTransport()
        self._network = network
        self._monitor_policy = monitor_policy or MonitorPolicy()
        self._log = logger or logging.getLogger(__name__)
        self._log.debug(
            "Construction client initialized: base_url=%s network=%s",
            self._base_url,
            self._network.to_dict(),
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: JsonTransport | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> ConstructionClient:
        """Build a client from a ClientConfig (transport defaults to httpx)."""
        if transport is None:
            transport = HttpxTransport(timeout=config.timeout_s, headers=config.headers)
        return cls(
            config.base_url,
            transport,
            network=config.network,
            monitor_policy=config.monitor,
            logger=logger,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def network(self) -> NetworkIdentifier:
        return self._network

    @property
    def monitor_policy(self) -> MonitorPolicy:
        return self._monitor_policy

    # -----------------------------------------------------------------
    # Request plumbing
    # -----------------------------------------------------------------

    async def _request(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        payload: dict[str, Any] = {"network_identifier": self._network.to_dict()}
        if body:
            payload.update(body)

        self._log.debug("Making request to %s: %s", path, payload)
        try:
            response = await self._transport.post_json(url, payload)
        except Exception as exc:
            self._log.error("Request failed to %s: %s", path, exc)
            raise

        self._log.debug("API response from %s: %s", path, response)
        _raise_for_envelope(response, path, self._log)
        return response

    # -----------------------------------------------------------------
    # Construction API
    # -----------------------------------------------------------------

    async def derive(self, public_key: str, tag: str) -> dict[str, Any]:
        """Derive an account identifier from a WOTS+ public key and tag."""
        return await self._request(
            PATH_DERIVE,
            {
                "public_key": PublicKey(public_key).to_dict(),
                "metadata": {"tag": tag},
            },
        )

    async def preprocess(
        self,
        operations: list[Operation],
        metadata: dict[str, Any],
    ) -> PreprocessResult:
        """Ask the node which options and public keys the build requires."""
        response = await self._request(
            PATH_PREPROCESS,
            {"operations": [op.to_dict() for op in operations], "metadata": metadata},
        )
        return _parse_preprocess_response(response)

    async def metadata(
        self,
        options: PreprocessOptions,
        public_keys: list[PublicKey],
    ) -> MetadataResult:
        """Fetch construction metadata and the suggested fee."""
        response = await self._request(
            PATH_METADATA,
            {
                "options": options.to_dict(),
                "public_keys": [pk.to_dict() for pk in public_keys],
            },
        )
        return _parse_metadata_response(response)

    async def payloads(
        self,
        operations: list[Operation],
        metadata: ConstructionMetadata,
        public_keys: list[PublicKey],
    ) -> PayloadsResult:
        """Fetch the unsigned transaction and the payloads to sign."""
        response = await self._request(
            PATH_PAYLOADS,
            {
                "operations": [op.to_dict() for op in operations],
                "metadata": metadata.to_dict(),
                "public_keys": [pk.to_dict() for pk in public_keys],
            },
        )
        return _parse_payloads_response(response)

    async def combine(
        self,
        unsigned_transaction: str,
        signatures: list[Signature],
    ) -> CombineResult:
        """Combine an unsigned transaction with its signatures."""
        response = await self._request(
            PATH_COMBINE,
            {
                "unsigned_transaction": unsigned_transaction,
                "signatures": [sig.to_dict() for sig in signatures],
            },
        )
        return CombineResult(
            signed_transaction=_require(response, "signed_transaction", str, PATH_COMBINE)
        )

    async def submit(self, signed_transaction: str) -> TransactionIdentifier | None:
        """Submit a signed transaction.

        Returns:
            The transaction identifier, or None if the node did not
            report a hash. Callers decide whether that is fatal.
        """
        response = await self._request(PATH_SUBMIT, {"signed_transaction": signed_transaction})
        return _parse_submit_response(response)

    async def parse(self, transaction: str, signed: bool) -> ParseResult:
        """Decode a (signed or unsigned) transaction back into operations."""
        response = await self._request(PATH_PARSE, {"transaction": transaction, "signed": signed})
        return _parse_parse_response(response)

    # -----------------------------------------------------------------
    # Data API
    # -----------------------------------------------------------------

    async def resolve_tag(self, tag: str) -> TagResolution:
        """Resolve a tag to its current full address and balance."""
        response = await self._request(
            PATH_CALL,
            {"method": TAG_RESOLVE_METHOD, "parameters": {"tag": tag}},
        )
        return _parse_tag_response(response)

    async def get_account_balance(self, address: str) -> AccountBalance:
        response = await self._request(PATH_BALANCE, {"account_identifier": {"address": address}})
        return _parse_balance_response(response)

    async def get_block(
        self,
        index: int | None = None,
        block_hash: str | None = None,
    ) -> dict[str, Any]:
        """Fetch a block by index and/or hash (at least one is required)."""
        if index is None and block_hash is None:
            raise ValueError("index or block_hash is required")
        identifier: dict[str, Any] = {}
        if index is not None:
            identifier["index"] = index
        if block_hash is not None:
            identifier["hash"] = block_hash
        response = await self._request(PATH_BLOCK, {"block_identifier": identifier})
        return _require(response, "block", dict, PATH_BLOCK)

    async def get_network_status(self) -> dict[str, Any]:
        return await self._request(PATH_NETWORK_STATUS)

    async def get_mempool_transactions(self) -> list[TransactionIdentifier]:
        """List the identifiers of all transactions in the mempool."""
        self._log.debug("Fetching mempool transactions")
        response = await self._request(PATH_MEMPOOL)
        identifiers = _require(response, "transaction_identifiers", list, PATH_MEMPOOL)
        return [TransactionIdentifier(hash=str(item["hash"])) for item in identifiers]

    async def get_mempool_transaction(self, tx_hash: str) -> MempoolTransaction:
        """Fetch a specific transaction from the mempool."""
        response = await self._request(
            PATH_MEMPOOL_TX,
            {"transaction_identifier": {"hash": tx_hash}},
        )
        return _parse_mempool_transaction_response(response, tx_hash)

    async def wait_for_transaction(
        self,
        tx_hash: str,
        timeout_ms: int | None = None,
        interval_ms: int | None = None,
    ) -> MempoolTransaction:
        """Poll the mempool until ``tx_hash`` appears or the timeout elapses.

        Defaults come from this client's MonitorPolicy.

        Raises:
            MempoolTimeoutError: If the transaction never appeared.
        """
        monitor = MempoolMonitor(self, logger=self._log)
        return await monitor.wait(
            tx_hash,
            timeout_ms=timeout_ms if timeout_ms is not None else self._monitor_policy.timeout_ms,
            interval_ms=interval_ms if interval_ms is not None else self._monitor_policy.interval_ms,
        )


# =====================================================================
# Error envelope
# =====================================================================


def _raise_for_envelope(
    response: dict[str, Any],
    endpoint: str,
    log: logging.Logger | None = None,
) -> None:
    """Raise RosettaApiError if the response is a Rosetta error envelope."""
    if "code" not in response:
        return
    if log is not None:
        log.error("API error from %s: %s", endpoint, response)
    code = response.get("code")
    raise RosettaApiError(
        str(response.get("message", "unknown error")),
        code=code if isinstance(code, int) else None,
        retriable=bool(response.get("retriable", False)),
        endpoint=endpoint,
        details={"error_details": response["details"]} if "details" in response else None,
    )


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _require(response: dict[str, Any], key: str, expected: type, endpoint: str) -> Any:
    value = response.get(key)
    if not isinstance(value, expected):
        raise MalformedResponseError(
            f"{endpoint}: expected {expected.__name__} field {key!r}",
            details={"endpoint": endpoint, "field": key},
        )
    return value


def _parse_preprocess_response(response: dict[str, Any]) -> PreprocessResult:
    options = _require(response, "options", dict, PATH_PREPROCESS)
    required = response.get("required_public_keys") or []
    return PreprocessResult(
        options=PreprocessOptions(raw=dict(options)),
        required_public_keys=tuple(str(item.get("address", "")) for item in required),
    )


def _parse_metadata_response(response: dict[str, Any]) -> MetadataResult:
    metadata = _require(response, "metadata", dict, PATH_METADATA)
    fees = response.get("suggested_fee") or []
    return MetadataResult(
        metadata=ConstructionMetadata(raw=dict(metadata)),
        suggested_fee=tuple(Amount.from_dict(fee) for fee in fees),
    )


def _parse_payloads_response(response: dict[str, Any]) -> PayloadsResult:
    unsigned = _require(response, "unsigned_transaction", str, PATH_PAYLOADS)
    payloads = _require(response, "payloads", list, PATH_PAYLOADS)
    parsed: list[SigningPayload] = []
    for item in payloads:
        account = item.get("account_identifier")
        parsed.append(
            SigningPayload(
                hex_bytes=str(item.get("hex_bytes", "")),
                signature_type=str(item.get("signature_type", WOTSP)),
                account_address=account.get("address") if isinstance(account, dict) else None,
            )
        )
    return PayloadsResult(unsigned_transaction=unsigned, payloads=tuple(parsed))


def _parse_submit_response(response: dict[str, Any]) -> TransactionIdentifier | None:
    identifier = response.get("transaction_identifier")
    if not isinstance(identifier, dict):
        return None
    tx_hash = identifier.get("hash")
    if not tx_hash:
        return None
    return TransactionIdentifier(hash=str(tx_hash))


def _parse_parse_response(response: dict[str, Any]) -> ParseResult:
    operations = _require(response, "operations", list, PATH_PARSE)
    signers = response.get("account_identifier_signers") or []
    return ParseResult(
        operations=tuple(Operation.from_dict(op) for op in operations),
        signers=tuple(str(s.get("address", "")) for s in signers),
        metadata=response.get("metadata"),
    )


def _parse_tag_response(response: dict[str, Any]) -> TagResolution:
    result = _require(response, "result", dict, PATH_CALL)
    address = result.get("address")
    if not address:
        raise MalformedResponseError(
            f"{PATH_CALL}: tag_resolve returned no address",
            details={"endpoint": PATH_CALL, "field": "result.address"},
        )
    return TagResolution(
        address=str(address),
        amount=str(result.get("amount", "0")),
        idempotent=bool(response.get("idempotent", False)),
    )


def _parse_balance_response(response: dict[str, Any]) -> AccountBalance:
    balances = _require(response, "balances", list, PATH_BALANCE)
    block = _require(response, "block_identifier", dict, PATH_BALANCE)
    return AccountBalance(
        balances=tuple(Amount.from_dict(b) for b in balances),
        block_identifier=BlockIdentifier(index=int(block["index"]), hash=str(block["hash"])),
    )


def _parse_mempool_transaction_response(
    response: dict[str, Any],
    tx_hash: str,
) -> MempoolTransaction:
    transaction = response.get("transaction")
    if not isinstance(transaction, dict):
        raise TransactionNotFoundError(
            f"Transaction {tx_hash} not found in mempool",
            details={"tx_hash": tx_hash},
        )
    identifier = transaction.get("transaction_identifier")
    if not isinstance(identifier, dict) or not identifier.get("hash"):
        raise MalformedResponseError(
            f"{PATH_MEMPOOL_TX}: transaction has no identifier",
            details={"endpoint": PATH_MEMPOOL_TX, "field": "transaction.transaction_identifier"},
        )
    return MempoolTransaction(
        transaction_identifier=TransactionIdentifier(hash=str(identifier["hash"])),
        operations=tuple(Operation.from_dict(op) for op in transaction.get("operations") or []),
        metadata=response.get("metadata"),
        raw=response,
    )
