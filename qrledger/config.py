"""
Runtime configuration for the QR asset gateway.

All settings come from environment variables (optionally seeded from a .env
file) and are read exactly once into an immutable Config that is passed to
every component.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_DEFAULT_CRYPTO_PATH = os.path.join(
    "..", "..", "test-network", "organizations", "peerOrganizations", "org1.example.com",
)
_USER_MSP = os.path.join("users", "User1@org1.example.com", "msp")


def _env(environ: dict, key: str, default: str) -> str:
    value = environ.get(key, "")
    return value if value else default


@dataclass(frozen=True)
class Timeouts:
    """Per-phase deadlines in seconds."""
    evaluate: float = 5.0
    endorse: float = 15.0
    submit: float = 5.0
    commit_status: float = 60.0
    connect: float = 5.0


@dataclass(frozen=True)
class Config:
    channel_name: str = "mychannel"
    chaincode_name: str = "livestock"
    msp_id: str = "Org1MSP"
    crypto_path: Path = Path(_DEFAULT_CRYPTO_PATH)
    key_directory: Path = Path(_DEFAULT_CRYPTO_PATH, _USER_MSP, "keystore")
    cert_directory: Path = Path(_DEFAULT_CRYPTO_PATH, _USER_MSP, "signcerts")
    tls_cert_path: Path = Path(_DEFAULT_CRYPTO_PATH, "peers", "peer0.org1.example.com", "tls", "ca.crt")
    peer_endpoint: str = "localhost:7051"
    peer_host_alias: str = "peer0.org1.example.com"
    log_level: str = "INFO"
    stub_mode: bool = False
    timeouts: Timeouts = field(default_factory=Timeouts)

    @classmethod
    def from_env(cls, environ: dict | None = None, dotenv_path: str | None = None) -> "Config":
        """Build a Config from the environment. Empty variables count as unset."""
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path, override=False)
            environ = dict(os.environ)

        crypto = _env(environ, "CRYPTO_PATH", _DEFAULT_CRYPTO_PATH)
        return cls(
            channel_name=_env(environ, "CHANNEL_NAME", "mychannel"),
            chaincode_name=_env(environ, "CHAINCODE_NAME", "livestock"),
            msp_id=_env(environ, "MSP_ID", "Org1MSP"),
            crypto_path=Path(crypto),
            key_directory=Path(_env(environ, "KEY_DIRECTORY_PATH",
                                    os.path.join(crypto, _USER_MSP, "keystore"))),
            cert_directory=Path(_env(environ, "CERT_DIRECTORY_PATH",
                                     os.path.join(crypto, _USER_MSP, "signcerts"))),
            tls_cert_path=Path(_env(environ, "TLS_CERT_PATH",
                                    os.path.join(crypto, "peers", "peer0.org1.example.com",
                                                 "tls", "ca.crt"))),
            peer_endpoint=_env(environ, "PEER_ENDPOINT", "localhost:7051"),
            peer_host_alias=_env(environ, "PEER_HOST_ALIAS", "peer0.org1.example.com"),
            log_level=_env(environ, "LOG_LEVEL", "INFO"),
            stub_mode=_env(environ, "FABRIC_STUB_MODE", "false").lower() == "true",
        )

    def describe(self) -> dict[str, str]:
        """Input parameters as shown at startup."""
        return {
            "channelName": self.channel_name,
            "chaincodeName": self.chaincode_name,
            "mspId": self.msp_id,
            "cryptoPath": str(self.crypto_path),
            "keyDirectoryPath": str(self.key_directory),
            "certDirectoryPath": str(self.cert_directory),
            "tlsCertPath": str(self.tls_cert_path),
            "peerEndpoint": self.peer_endpoint,
            "peerHostAlias": self.peer_host_alias,
        }
