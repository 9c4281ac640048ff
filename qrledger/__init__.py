"""QR asset ledger: Fabric gateway client and chaincode."""

__version__ = "1.0.0"
