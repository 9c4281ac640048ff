"""
QR asset smart contract.

Runs against a chaincode stub (get_state / put_state / set_event /
get_state_by_range). Every method either completes or raises; a raised
error aborts the transaction and the platform discards its writes.

Note the asymmetry between the two writers: InitLedger overwrites the seed
record unconditionally, CreateAsset refuses an existing key.
"""
from __future__ import annotations

import inspect
import json
import logging

from pydantic import ValidationError as SchemaError

from ..asset import QRAsset, asset_key, sample_asset
from ..errors import AlreadyExistsError, NotFoundError, ValidationError

log = logging.getLogger("qr.chaincode")

CREATED_EVENT = "QRCreated"
SEED_PRODUCT_ID = "0"


def _parse(raw, origin: str) -> QRAsset:
    try:
        return QRAsset.model_validate_json(raw)
    except SchemaError as exc:
        raise ValidationError(f"failed to unmarshal asset {origin}: {exc}") from exc


class QRAssetContract:

    def init_ledger(self, stub) -> None:
        seeds = [
            sample_asset(
                SEED_PRODUCT_ID,
                secondary_batch="SBATCH-001",
                certification_link=["https://iso.org/22000", "https://haccp.org"],
            ).stamped(),
        ]
        for asset in seeds:
            stub.put_state(asset.key, asset.to_json())
        log.info("ledger seeded with %d asset(s)", len(seeds))

    def asset_exists(self, stub, product_id: str) -> bool:
        return stub.get_state(asset_key(product_id)) is not None

    def create_asset(self, stub, asset_json: str) -> None:
        asset = _parse(asset_json, "input")
        if self.asset_exists(stub, asset.product_id):
            raise AlreadyExistsError(f"the asset {asset.product_id} already exists")

        asset = asset.stamped()
        stub.put_state(asset.key, asset.to_json())
        stub.set_event(CREATED_EVENT, json.dumps({"productId": asset.product_id}).encode("utf-8"))
        log.info("asset created product_id=%s", asset.product_id)

    def read_asset(self, stub, product_id: str) -> QRAsset:
        raw = stub.get_state(asset_key(product_id))
        if raw is None:
            raise NotFoundError(f"the asset {product_id} does not exist")
        return _parse(raw, f"at {asset_key(product_id)}")

    def read_asset_bytes(self, stub, product_id: str) -> bytes:
        """Stored bytes of a record, exactly as last committed."""
        self.read_asset(stub, product_id)
        return stub.get_state(asset_key(product_id))

    def get_all_assets(self, stub) -> list[QRAsset]:
        return [_parse(value, f"at {key}") for key, value in stub.get_state_by_range("", "")]

    # Transaction name -> method
    TRANSACTIONS = {
        "InitLedger": "init_ledger",
        "AssetExists": "asset_exists",
        "CreateAsset": "create_asset",
        "ReadAsset": "read_asset_bytes",
        "GetAllAssets": "get_all_assets",
    }

    def invoke(self, stub, function: str, args: list[str]) -> bytes:
        """Dispatch a named transaction and encode its result as JSON bytes."""
        method_name = self.TRANSACTIONS.get(function)
        if method_name is None:
            raise ValidationError(f"function {function!r} not found in contract")
        method = getattr(self, method_name)
        try:
            inspect.signature(method).bind(stub, *args)
        except TypeError as exc:
            raise ValidationError(f"{function}: {exc}") from exc
        return _encode(method(stub, *args))


def _encode(result) -> bytes:
    if result is None:
        return b""
    if isinstance(result, bytes):
        return result
    if isinstance(result, QRAsset):
        return result.to_json()
    if isinstance(result, list):
        return b"[" + b",".join(a.to_json() for a in result) + b"]"
    return json.dumps(result).encode("utf-8")
