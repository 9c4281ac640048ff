"""
REST facade over the gateway session.

  POST /invoke  form:  channelid, chaincodeid, function, args  -> submit
  GET  /query   query: channelid, chaincodeid, function, args  -> evaluate

`args` is either a JSON array of strings or a single plain string argument.

Run with: uvicorn qrledger.gateway.api:app
"""

import json
import logging
import threading
from typing import Any, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Query
from pydantic import BaseModel

from ..config import Config
from ..errors import LedgerError, TransactionError
from .fabric_client import FabricGateway
from .main import configure_logging, open_gateway

log = logging.getLogger("qr.api")

app = FastAPI(
    title="QR Asset Gateway",
    description="Submit and evaluate chaincode transactions on a Hyperledger Fabric channel.",
    version="1.0.0",
)


class TransactionResponse(BaseModel):
    function: str
    result: Any = None


_gateway: Optional[FabricGateway] = None
# Sync endpoints run in a thread pool; only one request may open the session.
_gateway_lock = threading.Lock()


def get_gateway() -> FabricGateway:
    global _gateway
    with _gateway_lock:
        if _gateway is None:
            config = Config.from_env()
            configure_logging(config)
            try:
                _gateway = open_gateway(config)
            except LedgerError as exc:
                log.error("gateway unavailable: %s", exc)
                raise HTTPException(status_code=503, detail=str(exc))
        return _gateway


@app.on_event("shutdown")
def shutdown():
    global _gateway
    with _gateway_lock:
        if _gateway is not None:
            _gateway.close()
            _gateway = None


def parse_args(raw: Optional[str]) -> list[str]:
    if raw is None or raw == "":
        return []
    if raw.lstrip().startswith("["):
        try:
            values = json.loads(raw)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"args is not a JSON array: {exc}")
        if not all(isinstance(v, str) for v in values):
            raise HTTPException(status_code=400, detail="args must be an array of strings")
        return values
    return [raw]


def _decode(payload: bytes):
    if not payload:
        return None
    try:
        return json.loads(payload)
    except ValueError:
        return payload.decode("utf-8", errors="replace")


def _call(gateway: FabricGateway, operation: str, channelid: str, chaincodeid: str,
          function: str, args: list[str]) -> TransactionResponse:
    contract = gateway.contract(channelid, chaincodeid)
    call = contract.submit if operation == "invoke" else contract.evaluate
    try:
        payload = call(function, *args)
    except TransactionError as exc:
        raise HTTPException(status_code=502, detail={
            "error": str(exc), "code": exc.code, "details": exc.details,
        })
    log.info("%s channel=%s chaincode=%s function=%s args=%d",
             operation, channelid, chaincodeid, function, len(args))
    return TransactionResponse(function=function, result=_decode(payload))


@app.get("/health", tags=["system"])
def health():
    return {"status": "ok"}


@app.post("/invoke", response_model=TransactionResponse, tags=["transactions"])
def invoke(
    channelid: str = Form(...),
    chaincodeid: str = Form(...),
    function: str = Form(...),
    args: Optional[str] = Form(default=None),
    gateway: FabricGateway = Depends(get_gateway),
):
    """Submit a transaction for endorsement, ordering and commit."""
    return _call(gateway, "invoke", channelid, chaincodeid, function, parse_args(args))


@app.get("/query", response_model=TransactionResponse, tags=["transactions"])
def query(
    channelid: str = Query(...),
    chaincodeid: str = Query(...),
    function: str = Query(...),
    args: Optional[str] = Query(default=None),
    gateway: FabricGateway = Depends(get_gateway),
):
    """Evaluate a read-only transaction on a single peer."""
    return _call(gateway, "query", channelid, chaincodeid, function, parse_args(args))
