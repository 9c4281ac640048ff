"""
Command-line client: seeds the ledger, creates one QR asset and reads it back.

    python -m qrledger.gateway

Steps, all sequential:
  1. dial the peer (TLS gRPC)
  2. load the user's certificate and private key
  3. open a gateway session on CHANNEL_NAME / CHAINCODE_NAME
  4. InitLedger    - failure is logged, the ledger may already be seeded
  5. CreateAsset   - new productId = current time in milliseconds
  6. ReadAsset     - same productId
Any failure after step 4 ends the process with exit status 1.
"""
from __future__ import annotations

import logging
import sys
import time
from typing import Optional

from ..asset import sample_asset
from ..config import Config
from ..errors import LedgerError
from .fabric_client import ContractClient, FabricGateway
from .identity import load_identity, load_signer
from .transport import new_grpc_channel

log = logging.getLogger("qr.client")


def configure_logging(config: Config) -> None:
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def display_input_parameters(config: Config) -> None:
    for name, value in config.describe().items():
        log.info("%-18s %s", name + ":", value)


def open_gateway(config: Config) -> FabricGateway:
    """Build transport, identity and signer, then open the gateway session."""
    if config.stub_mode:
        from ..chaincode.local import connect
        log.info("FABRIC_STUB_MODE=true, using the in-process chaincode")
        return FabricGateway(None, None, None, config, connect=connect)

    channel = new_grpc_channel(config)
    try:
        identity = load_identity(config)
        signer = load_signer(config)
        return FabricGateway(channel, identity, signer, config)
    except BaseException:
        channel.close()
        raise


def new_product_id() -> str:
    return str(time.time_ns() // 1_000_000)


def run(contract: ContractClient, product_id: Optional[str] = None) -> str:
    """Run the InitLedger / CreateAsset / ReadAsset sequence; return the productId."""
    try:
        contract.init_ledger()
        log.info("*** InitLedger transaction committed successfully")
    except LedgerError as exc:
        log.warning("*** InitLedger error (continuing): %s", exc)

    product_id = product_id or new_product_id()
    contract.create_asset(sample_asset(product_id))
    log.info("*** CreateAsset transaction committed successfully (productId=%s)", product_id)

    result = contract.evaluate("ReadAsset", product_id)
    log.info("*** Result (ReadAsset): %s", result.decode("utf-8"))
    return product_id


def main() -> int:
    config = Config.from_env()
    configure_logging(config)
    display_input_parameters(config)

    try:
        gateway = open_gateway(config)
    except LedgerError as exc:
        log.error("failed to open gateway session: %s", exc)
        return 1

    with gateway:
        try:
            run(gateway.contract())
        except LedgerError as exc:
            log.error("*** %s", exc)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
