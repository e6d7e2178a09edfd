"""Mutual TLS settings and trust-chain certificates of a Dapr control plane."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Protocol, TextIO

from cryptography import x509

from daprctl.console import warning_status_event
from daprctl.pods import NAMESPACE_ALL
from daprctl.resources import SYSTEM_CONFIG_NAME, Configuration

TRUST_BUNDLE_SECRET_NAME = "dapr-trust-bundle"
WARNING_DAYS_FOR_CERT_EXPIRY = 30

ROOT_CERT_KEY = "ca.crt"
ISSUER_CERT_KEY = "issuer.crt"
ISSUER_KEY_KEY = "issuer.key"

_HELP_MESSAGE = "Please see docs.dapr.io for certificate renewal instructions to avoid service interruptions."
_RFC1123 = "%a, %d %b %Y %H:%M:%S UTC"


class _Secret(Protocol):
    name: str
    data: Mapping[str, bytes]


class _MTLSClient(Protocol):
    def list_configurations(self, namespace: str) -> Iterable[Configuration]:
        """Return configurations in a namespace; raise LookupError if the resource type is absent."""

    def list_secrets(self, namespace: str) -> Iterable[_Secret]:
        """Return the secrets of a namespace."""


def default_configuration() -> Configuration:
    """Return the system configuration a fresh installation starts with."""
    return Configuration(
        name=SYSTEM_CONFIG_NAME,
        spec={
            "mtls": {
                "enabled": True,
                "workloadCertTTL": "24h",
                "allowedClockSkew": "15m",
            }
        },
    )


def _system_config(client: _MTLSClient) -> Configuration:
    try:
        configs = list(client.list_configurations(NAMESPACE_ALL))
    except LookupError:
        configs = []
    for config in configs:
        if config.name == SYSTEM_CONFIG_NAME:
            return config
    raise LookupError("system configuration not found")


def is_mtls_enabled(client: _MTLSClient) -> bool:
    """Return whether the cluster's system configuration enables mTLS."""
    spec = _system_config(client).spec
    return bool((spec.get("mtls") or {}).get("enabled", False))


def _trust_chain_secret(client: _MTLSClient) -> _Secret:
    namespace = _system_config(client).namespace
    for secret in client.list_secrets(namespace):
        if secret.name == TRUST_BUNDLE_SECRET_NAME:
            return secret
    raise LookupError(
        f"could not find trust chain secret named {TRUST_BUNDLE_SECRET_NAME} in namespace {namespace}"
    )


def _write_private(path: Path, content: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(content)


def export_trust_chain(client: _MTLSClient, output_dir: str) -> None:
    """Save the root certificate, issuer certificate and issuer key into a directory."""
    directory = Path(output_dir)
    if not directory.exists():
        directory.mkdir(mode=0o755, parents=True)
    secret = _trust_chain_secret(client)
    for key in (ROOT_CERT_KEY, ISSUER_CERT_KEY, ISSUER_KEY_KEY):
        _write_private(directory / key, bytes(secret.data.get(key, b"")))


def certificate_expiry(client: _MTLSClient) -> datetime:
    """Return when the cluster's root certificate expires, in UTC."""
    secret = _trust_chain_secret(client)
    if ROOT_CERT_KEY not in secret.data:
        raise LookupError("root certificate not loaded yet, please try again in few minutes")
    cert = x509.load_pem_x509_certificate(bytes(secret.data[ROOT_CERT_KEY]))
    expiry = getattr(cert, "not_valid_after_utc", None)
    if expiry is None:
        expiry = cert.not_valid_after.replace(tzinfo=timezone.utc)
    return expiry


def check_for_cert_expiry(client: _MTLSClient, stream: TextIO | None = None) -> None:
    """Warn when the root certificate expires within the warning period; stay silent on errors."""
    try:
        expiry = certificate_expiry(client)
    except Exception:  # the warning is best effort and must not disturb the command
        return
    out = stream if stream is not None else sys.stdout
    days_remaining = int((expiry - datetime.now(timezone.utc)).total_seconds() / 3600 / 24)
    if days_remaining >= WARNING_DAYS_FOR_CERT_EXPIRY:
        return
    if days_remaining == 0:
        warning = "Dapr root certificate of your Kubernetes cluster expires today."
    elif days_remaining < 0:
        warning = "Dapr root certificate of your Kubernetes cluster has expired."
    else:
        warning = f"Dapr root certificate of your Kubernetes cluster expires in {days_remaining} days."
    expiry_text = expiry.astimezone(timezone.utc).strftime(_RFC1123)
    warning_status_event(out, f"{warning} Expiry date: {expiry_text}. \n {_HELP_MESSAGE}")