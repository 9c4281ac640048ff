"""
Fabric Gateway session for the QR asset chaincode.

submit() runs the full endorse -> order -> commit path and blocks until the
commit status is known; evaluate() queries a single peer and never reaches
the orderer. Each phase has its own deadline (see config.Timeouts). Nothing
is retried here: a failed call is logged and raised to the caller.
"""
from __future__ import annotations

import json
import logging
from typing import Callable, Optional

import grpc

from ..asset import QRAsset
from ..config import Config
from ..errors import ConfigurationError, TransactionError
from .identity import Signer, X509Identity

log = logging.getLogger("qr.gateway")


def describe_rpc_error(exc: grpc.RpcError) -> tuple[str, str, list[str]]:
    """Return (status code, message, details) of a failed gateway call."""
    code = exc.code() if callable(getattr(exc, "code", None)) else None
    message = exc.details() if callable(getattr(exc, "details", None)) else None
    details: list[str] = []
    for item in getattr(exc, "error_details", None) or []:
        details.append(str(item))
    metadata = exc.trailing_metadata() if callable(getattr(exc, "trailing_metadata", None)) else None
    for key, value in metadata or ():
        if not key.endswith("-bin"):
            details.append(f"{key}={value}")
    code_name = code.name if isinstance(code, grpc.StatusCode) else str(code)
    return code_name, message or str(exc), details


class ContractClient:
    """Named-channel / named-chaincode handle of a gateway session."""

    def __init__(self, contract, channel_name: str, chaincode_name: str):
        self._contract = contract
        self.channel_name = channel_name
        self.chaincode_name = chaincode_name

    def _fail(self, operation: str, name: str, exc: grpc.RpcError) -> TransactionError:
        code, message, details = describe_rpc_error(exc)
        log.error("%s %s failed: code=%s message=%r", operation, name, code, message)
        for i, detail in enumerate(details):
            log.error(" - detail[%d]: %s", i, detail)
        return TransactionError(name, message, code=code, details=details)

    def submit(self, name: str, *args: str) -> bytes:
        log.info("--> Submit Transaction: %s", name)
        try:
            outcome = self._contract.submit(name, arguments=list(args))
        except grpc.RpcError as exc:
            raise self._fail("submit", name, exc) from exc
        log.info("*** %s committed tx_id=%s", name, getattr(outcome, "transaction_id", ""))
        return getattr(outcome, "result", outcome) or b""

    def evaluate(self, name: str, *args: str) -> bytes:
        log.info("--> Evaluate Transaction: %s", name)
        try:
            return self._contract.evaluate(name, arguments=list(args))
        except grpc.RpcError as exc:
            raise self._fail("evaluate", name, exc) from exc

    def init_ledger(self) -> None:
        self.submit("InitLedger")

    def create_asset(self, asset: QRAsset) -> None:
        payload = asset.model_dump_json(by_alias=True, exclude={"doc_type"})
        self.submit("CreateAsset", payload)

    def read_asset(self, product_id: str) -> QRAsset:
        return QRAsset.model_validate_json(self.evaluate("ReadAsset", product_id))

    def asset_exists(self, product_id: str) -> bool:
        return json.loads(self.evaluate("AssetExists", product_id))

    def get_all_assets(self) -> list[QRAsset]:
        raw = self.evaluate("GetAllAssets")
        return [QRAsset.model_validate(item) for item in json.loads(raw or b"null") or []]


def load_sdk_connect() -> Callable:
    """connect() from the Fabric Gateway SDK, which is installed separately.

    Called as connect(channel, identity=, sign=, <phase>_timeout=...) and
    returns a gateway exposing get_network(name).get_contract(name).
    """
    try:
        from hf_fabric_gateway import connect
    except ImportError as exc:
        raise ConfigurationError(
            "Fabric Gateway SDK (hf_fabric_gateway) is not importable; "
            "install it next to qrledger or set FABRIC_STUB_MODE=true"
        ) from exc
    return connect


class FabricGateway:
    """One gateway session over a gRPC channel, signed by a single identity.

    Closing the gateway also closes the gRPC channel it was given.
    """

    def __init__(self, channel: Optional[grpc.Channel], identity: Optional[X509Identity],
                 signer: Optional[Signer], config: Config,
                 connect: Optional[Callable] = None):
        if connect is None:
            connect = load_sdk_connect()
        timeouts = config.timeouts
        self._config = config
        self._channel = channel
        self._gateway = connect(
            channel,
            identity=identity,
            sign=signer,
            evaluate_timeout=timeouts.evaluate,
            endorse_timeout=timeouts.endorse,
            submit_timeout=timeouts.submit,
            commit_status_timeout=timeouts.commit_status,
        )
        self._closed = False

    def contract(self, channel_name: Optional[str] = None,
                 chaincode_name: Optional[str] = None) -> ContractClient:
        channel_name = channel_name or self._config.channel_name
        chaincode_name = chaincode_name or self._config.chaincode_name
        network = self._gateway.get_network(channel_name)
        return ContractClient(network.get_contract(chaincode_name), channel_name, chaincode_name)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._gateway, "close", None)
        if close is not None:
            close()
        if self._channel is not None:
            self._channel.close()
        log.info("gateway session closed")

    def __enter__(self) -> "FabricGateway":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
