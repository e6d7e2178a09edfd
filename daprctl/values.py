"""Helm chart values for installing, upgrading and re-certifying the Dapr control plane."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from packaging.version import InvalidVersion, Version

from daprctl.status import StatusOutput

DASHBOARD_NAME = "dapr-dashboard"

# Chart versions that differ from the runtime version they ship.
CHART_VERSIONS: dict[str, str] = {
    "0.7.0": "0.4.0",
    "0.7.1": "0.4.1",
    "0.8.0": "0.4.2",
    "0.9.0": "0.4.3",
}

SUPPORTED_IMAGE_VARIANTS: tuple[str, ...] = ("mariner",)

_MAX_INDEX = 65536
_INTEGER = re.compile(r"^[+-]?\d+$")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1


@dataclass
class InitConfiguration:
    """Settings for a fresh control-plane installation."""

    version: str = ""
    namespace: str = ""
    enable_mtls: bool = False
    enable_ha: bool = False
    args: list[str] = field(default_factory=list)
    wait: bool = False
    timeout: int = 0
    image_registry_uri: str = ""
    image_variant: str = ""
    root_certificate_file_path: str = ""
    issuer_certificate_file_path: str = ""
    issuer_private_key_file_path: str = ""


@dataclass
class UpgradeConfig:
    """Settings for upgrading an installed control plane."""

    runtime_version: str = ""
    args: list[str] = field(default_factory=list)
    timeout: int = 0
    image_registry_uri: str = ""
    image_variant: str = ""


def _typed(text: str) -> Any:
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    if text == "0":
        return 0
    if text and text[0] != "0" and _INTEGER.match(text):
        number = int(text)
        if _INT64_MIN <= number <= _INT64_MAX:
            return number
    return text


def _set_index(items: list[Any], index: int, value: Any) -> list[Any]:
    result = list(items)
    if index >= len(result):
        result.extend([None] * (index + 1 - len(result)))
    result[index] = value
    return result


class _ValuesParser:
    """Parser for ``key.path=value`` assignments separated by commas."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def _next(self) -> str | None:
        if self._pos >= len(self._text):
            return None
        ch = self._text[self._pos]
        self._pos += 1
        return ch

    def _peek(self) -> str | None:
        return self._text[self._pos] if self._pos < len(self._text) else None

    def _until(self, stops: str) -> tuple[str, str | None]:
        out: list[str] = []
        while (ch := self._next()) is not None:
            if ch == "\\":
                escaped = self._next()
                if escaped is None:
                    break
                out.append(escaped)
                continue
            if ch in stops:
                return "".join(out), ch
            out.append(ch)
        return "".join(out), None

    def parse(self, data: dict[str, Any]) -> None:
        while self._key(data):
            pass

    def _key(self, data: dict[str, Any]) -> bool:
        key, stop = self._until("=[,.")
        if stop is None:
            if not key:
                return False
            raise ValueError(f'key "{key}" has no value')
        if stop == ",":
            raise ValueError(f'key "{key}" has no value (cannot end with ,)')
        if stop == "=":
            data[key] = self._value()
            return True
        if stop == ".":
            inner = data.get(key)
            if inner is None:
                inner = {}
            elif not isinstance(inner, dict):
                raise ValueError(f'key "{key}" is not a map')
            self._key(inner)
            if not inner:
                raise ValueError(f'key map "{key}" has no value')
            data[key] = inner
            return True
        index = self._index()
        existing = data.get(key)
        data[key] = self._list_item(existing if isinstance(existing, list) else [], index)
        return True

    def _value(self) -> Any:
        if self._peek() == "{":
            self._next()
            items = self._list_values()
            trailing = self._next()
            if trailing not in (None, ","):
                raise ValueError(f"list must terminate with ',' but got {trailing!r}")
            return items
        text, _ = self._until(",")
        return _typed(text)

    def _list_values(self) -> list[Any]:
        if self._peek() == "}":
            self._next()
            return []
        items: list[Any] = []
        while True:
            text, stop = self._until(",}")
            if stop is None:
                raise ValueError("list must terminate with '}'")
            items.append(_typed(text))
            if stop == "}":
                return items

    def _index(self) -> int:
        text, stop = self._until("]")
        if stop is None:
            raise ValueError("list index must terminate with ']'")
        if not _INTEGER.match(text):
            raise ValueError(f"invalid list index {text!r}")
        index = int(text)
        if index < 0:
            raise ValueError(f"negative {index} index not allowed")
        if index > _MAX_INDEX:
            raise ValueError(f"index of {index} is greater than maximum supported index of {_MAX_INDEX}")
        return index

    def _list_item(self, items: list[Any], index: int) -> list[Any]:
        ch = self._next()
        current = items[index] if index < len(items) else None
        if ch == "=":
            value = self._value()
        elif ch == ".":
            inner = current if isinstance(current, dict) else {}
            self._key(inner)
            value = inner
        elif ch == "[":
            sub_index = self._index()
            value = self._list_item(current if isinstance(current, list) else [], sub_index)
        elif ch is None:
            raise ValueError("parse error: unexpected end of list item")
        else:
            raise ValueError(f"parse error: unexpected token {ch!r}")
        return _set_index(items, index, value)


def parse_into(expression: str, values: dict[str, Any]) -> None:
    """Merge ``a.b=c,d[0]=e`` style assignments into a nested values mapping."""
    _ValuesParser(expression).parse(values)


def _parse_all(expressions: Iterable[str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for expression in expressions:
        parse_into(expression, values)
    return values


def chart_version(runtime_version: str) -> str:
    """Return the chart version for a runtime version; they are equal unless mapped."""
    return CHART_VERSIONS.get(runtime_version, runtime_version)


def _validate_image_variant(image_variant: str) -> None:
    if image_variant and image_variant not in SUPPORTED_IMAGE_VARIANTS:
        raise ValueError(f"image variant {image_variant} is not supported")


def _variant_version(version: str, image_variant: str) -> str:
    return f"{version}-{image_variant}" if image_variant else version


def _certificate_values(ca: str, issuer_cert: str, issuer_key: str) -> list[str]:
    return [
        f"dapr_sentry.tls.root.certPEM={ca}",
        f"dapr_sentry.tls.issuer.certPEM={issuer_cert}",
        f"dapr_sentry.tls.issuer.keyPEM={issuer_key}",
    ]


def parse_certificate_files(root_cert: str, issuer_cert: str, issuer_key: str) -> tuple[bytes, bytes, bytes]:
    """Read the root certificate, issuer certificate and issuer key files."""
    return Path(root_cert).read_bytes(), Path(issuer_cert).read_bytes(), Path(issuer_key).read_bytes()


def chart_values(config: InitConfiguration, version: str) -> dict[str, Any]:
    """Build the chart values for a fresh installation."""
    _validate_image_variant(config.image_variant)
    expressions = [
        f"global.ha.enabled={'true' if config.enable_ha else 'false'}",
        f"global.mtls.enabled={'true' if config.enable_mtls else 'false'}",
        f"global.tag={_variant_version(version, config.image_variant)}",
    ]
    if config.image_registry_uri:
        expressions.append(f"global.registry={config.image_registry_uri}")
    expressions.extend(config.args)

    if (
        config.root_certificate_file_path
        and config.issuer_certificate_file_path
        and config.issuer_private_key_file_path
    ):
        root, issuer, key = parse_certificate_files(
            config.root_certificate_file_path,
            config.issuer_certificate_file_path,
            config.issuer_private_key_file_path,
        )
        expressions.extend(_certificate_values(root.decode(), issuer.decode(), key.decode()))

    return _parse_all(expressions)


def upgrade_chart_values(
    ca: str,
    issuer_cert: str,
    issuer_key: str,
    ha_mode: bool,
    mtls: bool,
    conf: UpgradeConfig,
) -> dict[str, Any]:
    """Build the chart values for an upgrade, carrying over certificates and HA mode."""
    _validate_image_variant(conf.image_variant)
    expressions = list(conf.args)
    expressions.append(f"global.tag={_variant_version(conf.runtime_version, conf.image_variant)}")
    if mtls and ca and issuer_cert and issuer_key:
        expressions.extend(_certificate_values(ca, issuer_cert, issuer_key))
    else:
        expressions.append("global.mtls.enabled=false")
    if conf.image_registry_uri:
        expressions.append(f"global.registry={conf.image_registry_uri}")
    if ha_mode:
        expressions.append("global.ha.enabled=true")
    return _parse_all(expressions)


def create_helm_params_for_new_certificates(ca: str, issuer_cert: str, issuer_key: str) -> dict[str, Any]:
    """Build the chart values that replace the trust chain certificates."""
    if not (ca and issuer_cert and issuer_key):
        raise ValueError("parameters not found")
    return _parse_all(_certificate_values(ca, issuer_cert, issuer_key))


def high_availability_enabled(status: Iterable[StatusOutput]) -> bool:
    """Return whether any control-plane service other than the dashboard runs replicated."""
    return any(entry.replicas > 1 for entry in status if entry.name != DASHBOARD_NAME)


def is_downgrade(target_version: str, existing_version: str) -> bool:
    """Return whether moving from the existing version to the target is a downgrade."""
    try:
        existing = Version(existing_version)
    except InvalidVersion as exc:
        raise ValueError(
            f"Upgrade failed, {exc}. The current installed version does not have sematic versioning"
        ) from exc
    try:
        target = Version(target_version)
    except InvalidVersion as exc:
        raise ValueError(f"invalid target version {target_version!r}") from exc
    return target < existing