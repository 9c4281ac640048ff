"""
In-process stand-in for a Fabric peer running the QR asset chaincode.

Exposes the same connect() -> gateway -> network -> contract chain as the
Fabric Gateway SDK so that the client, the REST facade and the tests can run
without a test network (FABRIC_STUB_MODE=true). Chaincode failures come back
as gRPC errors, the way a peer reports a failed endorsement.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import grpc

from ..errors import LedgerError
from .contract import QRAssetContract
from .state import MemoryWorldState

log = logging.getLogger("qr.chaincode.local")


class LocalRpcError(grpc.RpcError):

    def __init__(self, code: grpc.StatusCode, message: str, error_details: list[str]):
        super().__init__(message)
        self._code = code
        self._message = message
        self.error_details = error_details

    def code(self) -> grpc.StatusCode:
        return self._code

    def details(self) -> str:
        return self._message

    def trailing_metadata(self):
        return ()


@dataclass
class SubmittedTransaction:
    transaction_id: str
    result: bytes


class LocalContract:

    def __init__(self, state: MemoryWorldState, chaincode: QRAssetContract, msp_id: str):
        self._state = state
        self._chaincode = chaincode
        self._msp_id = msp_id

    def _fail(self, code: grpc.StatusCode, phase: str, exc: LedgerError) -> LocalRpcError:
        detail = f"address=local:0, mspId={self._msp_id}, message=chaincode response 500, {exc}"
        return LocalRpcError(code, f"{phase}: {exc}", [detail])

    def submit(self, name: str, arguments: Optional[list[str]] = None) -> SubmittedTransaction:
        try:
            with self._state.transaction() as stub:
                result = self._chaincode.invoke(stub, name, list(arguments or []))
        except LedgerError as exc:
            raise self._fail(grpc.StatusCode.ABORTED, "failed to endorse transaction", exc) from exc
        return SubmittedTransaction(transaction_id=stub.tx_id, result=result)

    def evaluate(self, name: str, arguments: Optional[list[str]] = None) -> bytes:
        # Evaluations run the chaincode but never commit.
        stub = self._state.read_only_stub()
        try:
            return self._chaincode.invoke(stub, name, list(arguments or []))
        except LedgerError as exc:
            raise self._fail(grpc.StatusCode.UNKNOWN, "failed to evaluate transaction", exc) from exc


class LocalNetwork:

    def __init__(self, gateway: "LocalGateway", name: str):
        self._gateway = gateway
        self.name = name

    def get_contract(self, chaincode_name: str) -> LocalContract:
        return self._gateway.contract_for(self.name, chaincode_name)


class LocalGateway:
    """Keeps one world state per (channel, chaincode) pair."""

    def __init__(self, msp_id: str = "Org1MSP"):
        self._msp_id = msp_id
        self._states: dict[tuple[str, str], MemoryWorldState] = {}
        self.closed = False

    def get_network(self, name: str) -> LocalNetwork:
        return LocalNetwork(self, name)

    def state(self, channel_name: str, chaincode_name: str) -> MemoryWorldState:
        return self._states.setdefault((channel_name, chaincode_name), MemoryWorldState())

    def contract_for(self, channel_name: str, chaincode_name: str) -> LocalContract:
        return LocalContract(self.state(channel_name, chaincode_name), QRAssetContract(), self._msp_id)

    def close(self) -> None:
        self.closed = True


def connect(channel, identity=None, sign=None, **options) -> LocalGateway:
    msp_id = identity.msp_id if identity is not None else "Org1MSP"
    log.info("local gateway connected msp_id=%s options=%s", msp_id, sorted(options))
    return LocalGateway(msp_id=msp_id)
