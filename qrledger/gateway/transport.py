"""
TLS gRPC transport to the gateway peer.

The peer's TLS CA certificate is normally found at TLS_CERT_PATH. When that
file is missing (a regenerated test network, a different working directory)
the crypto material tree is searched for it before giving up.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import grpc
from cryptography import x509

from ..config import Config
from ..errors import ConfigurationError, ConnectivityError

log = logging.getLogger("qr.transport")

TLS_CA_FILENAME = "ca.crt"


def _walk_files(base_dir: Path):
    """Yield every file under base_dir in lexical path order.

    Files and subdirectories share one sorted sequence, so "a/ca.crt" comes
    before "b.crt". Unreadable directories are skipped.
    """
    try:
        with os.scandir(base_dir) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError:
        return
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        if is_dir:
            yield from _walk_files(Path(entry.path))
        else:
            yield Path(entry.path)


def find_tls_cert(base_dir: Path, host_alias: str,
                  filename: str = TLS_CA_FILENAME) -> Optional[Path]:
    """Search base_dir for the peer's TLS CA certificate.

    First pass: a file named `filename` whose path mentions `host_alias`.
    Second pass: any file whose name ends with `filename`.
    """
    wanted = filename.lower()
    for path in _walk_files(base_dir):
        if path.name.lower() == wanted and host_alias in str(path):
            return path
    for path in _walk_files(base_dir):
        if path.name.endswith(filename):
            return path
    return None


def resolve_tls_cert_path(config: Config) -> Path:
    tls_path = Path(config.tls_cert_path).absolute()
    if tls_path.exists():
        return tls_path

    found = find_tls_cert(config.crypto_path, config.peer_host_alias)
    if found is None:
        raise ConfigurationError(
            f"tls cert not found. Tried: {config.tls_cert_path} "
            f"and searched under crypto path: {config.crypto_path}"
        )
    log.info("using discovered TLS cert at %s", found)
    return found


def load_trust_roots(path: Path) -> bytes:
    """Read the TLS CA bundle and check that it holds PEM certificates."""
    try:
        pem = Path(path).read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"failed to read TLS cert at {path}: {exc}") from exc
    try:
        roots = x509.load_pem_x509_certificates(pem)
    except ValueError as exc:
        raise ConfigurationError(f"failed to append TLS cert from {path}: {exc}") from exc
    log.debug("loaded %d trust root(s) from %s", len(roots), path)
    return pem


def new_grpc_channel(config: Config) -> grpc.Channel:
    """Open a TLS channel to the peer and wait for the handshake to finish."""
    root_certificates = load_trust_roots(resolve_tls_cert_path(config))
    credentials = grpc.ssl_channel_credentials(root_certificates=root_certificates)
    channel = grpc.secure_channel(
        config.peer_endpoint,
        credentials,
        options=[("grpc.ssl_target_name_override", config.peer_host_alias)],
    )
    try:
        grpc.channel_ready_future(channel).result(timeout=config.timeouts.connect)
    except grpc.FutureTimeoutError as exc:
        channel.close()
        raise ConnectivityError(
            f"failed to dial {config.peer_endpoint}: not ready after "
            f"{config.timeouts.connect:g}s"
        ) from exc
    log.info("connected to peer endpoint=%s host_alias=%s",
             config.peer_endpoint, config.peer_host_alias)
    return channel
