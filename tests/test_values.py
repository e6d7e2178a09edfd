import pytest

from daprctl.status import StatusOutput
from daprctl.values import (
    InitConfiguration,
    UpgradeConfig,
    chart_values,
    chart_version,
    create_helm_params_for_new_certificates,
    high_availability_enabled,
    is_downgrade,
    parse_certificate_files,
    parse_into,
    upgrade_chart_values,
)


def test_ha_mode():
    assert high_availability_enabled([StatusOutput(replicas=3)]) is True


def test_non_ha_mode():
    assert high_availability_enabled([StatusOutput(replicas=1)]) is False


def test_ha_mode_ignores_dashboard():
    status = [StatusOutput(name="dapr-dashboard", replicas=3), StatusOutput(name="dapr-operator", replicas=1)]
    assert high_availability_enabled(status) is False


def test_mtls_chart_values():
    conf = UpgradeConfig(runtime_version="mocker_version_1.0.0", args=[], timeout=0, image_registry_uri="")
    values = upgrade_chart_values("1", "2", "3", True, True, conf)
    assert len(values) == 2
    assert values["global"] == {"tag": "mocker_version_1.0.0", "ha": {"enabled": True}}
    assert values["dapr_sentry"]["tls"]["root"]["certPEM"] == 1
    assert values["dapr_sentry"]["tls"]["issuer"] == {"certPEM": 2, "keyPEM": 3}


def test_args_chart_values():
    conf = UpgradeConfig(runtime_version="mocker_version_1.0.0", args=["a=b", "c=d"], timeout=0, image_registry_uri="")
    values = upgrade_chart_values("1", "2", "3", True, True, conf)
    assert len(values) == 4
    assert values["a"] == "b"
    assert values["c"] == "d"


def test_upgrade_values_without_mtls():
    conf = UpgradeConfig(runtime_version="1.10.0", image_registry_uri="ghcr.io/dapr", image_variant="mariner")
    values = upgrade_chart_values("", "", "", False, False, conf)
    assert values == {
        "global": {"tag": "1.10.0-mariner", "mtls": {"enabled": False}, "registry": "ghcr.io/dapr"}
    }


def test_upgrade_values_rejects_unknown_variant():
    with pytest.raises(ValueError):
        upgrade_chart_values("1", "2", "3", False, True, UpgradeConfig(runtime_version="1.0.0", image_variant="alpine"))


@pytest.mark.parametrize(
    "target, existing, expected",
    [
        ("1.3.0", "1.4.0-rc.5", True),
        ("1.3.0", "1.4.0", True),
        ("1.4.0-rc.5", "1.3.0", False),
        ("1.4.0", "1.3.0", False),
    ],
)
def test_is_downgrade(target, existing, expected):
    assert is_downgrade(target, existing) is expected


def test_is_downgrade_rejects_unversioned_install():
    with pytest.raises(ValueError, match="does not have sematic versioning"):
        is_downgrade("1.4.0", "not-a-version")


@pytest.mark.parametrize(
    "runtime, expected",
    [("0.7.0", "0.4.0"), ("0.7.1", "0.4.1"), ("0.8.0", "0.4.2"), ("0.9.0", "0.4.3"), ("1.10.0", "1.10.0")],
)
def test_chart_version(runtime, expected):
    assert chart_version(runtime) == expected


def test_parse_into_nested_and_typed():
    values = {}
    parse_into("a.b=c", values)
    parse_into("x=true,n=null,z=007,i=42,s=hello", values)
    assert values == {"a": {"b": "c"}, "x": True, "n": None, "z": "007", "i": 42, "s": "hello"}


def test_parse_into_merges_existing_maps():
    values = {"global": {"tag": "1.0"}}
    parse_into("global.ha.enabled=false", values)
    assert values == {"global": {"tag": "1.0", "ha": {"enabled": False}}}


def test_parse_into_lists():
    values = {}
    parse_into("l={1,two},arr[1]=x,empty={}", values)
    assert values == {"l": [1, "two"], "arr": [None, "x"], "empty": []}


def test_parse_into_escaped_comma():
    values = {}
    parse_into(r"a=b\,c", values)
    assert values == {"a": "b,c"}


@pytest.mark.parametrize("expression", ["name", "name,", "a.", "arr[-1]=x"])
def test_parse_into_errors(expression):
    with pytest.raises(ValueError):
        parse_into(expression, {})


def test_chart_values_defaults():
    config = InitConfiguration(version="1.10.0", args=["foo.bar=baz"])
    values = chart_values(config, "1.10.0")
    assert values == {
        "global": {"ha": {"enabled": False}, "mtls": {"enabled": False}, "tag": "1.10.0"},
        "foo": {"bar": "baz"},
    }


def test_chart_values_with_certificates(tmp_path):
    root = tmp_path / "ca.crt"
    issuer = tmp_path / "issuer.crt"
    key = tmp_path / "issuer.key"
    root.write_text("ROOTPEM")
    issuer.write_text("ISSUERPEM")
    key.write_text("KEYPEM")
    config = InitConfiguration(
        enable_ha=True,
        enable_mtls=True,
        image_registry_uri="ghcr.io/dapr",
        image_variant="mariner",
        root_certificate_file_path=str(root),
        issuer_certificate_file_path=str(issuer),
        issuer_private_key_file_path=str(key),
    )
    values = chart_values(config, "1.10.0")
    assert values["global"] == {
        "ha": {"enabled": True},
        "mtls": {"enabled": True},
        "tag": "1.10.0-mariner",
        "registry": "ghcr.io/dapr",
    }
    assert values["dapr_sentry"]["tls"] == {
        "root": {"certPEM": "ROOTPEM"},
        "issuer": {"certPEM": "ISSUERPEM", "keyPEM": "KEYPEM"},
    }


def test_chart_values_rejects_unknown_variant():
    with pytest.raises(ValueError, match="not supported"):
        chart_values(InitConfiguration(image_variant="alpine"), "1.10.0")


def test_create_helm_params_for_new_certificates():
    values = create_helm_params_for_new_certificates("ca", "cert", "key")
    assert values == {
        "dapr_sentry": {"tls": {"root": {"certPEM": "ca"}, "issuer": {"certPEM": "cert", "keyPEM": "key"}}}
    }


def test_create_helm_params_requires_all_parts():
    with pytest.raises(ValueError, match="parameters not found"):
        create_helm_params_for_new_certificates("ca", "", "key")


def test_parse_certificate_files(tmp_path):
    (tmp_path / "a").write_bytes(b"one")
    (tmp_path / "b").write_bytes(b"two")
    (tmp_path / "c").write_bytes(b"three")
    result = parse_certificate_files(str(tmp_path / "a"), str(tmp_path / "b"), str(tmp_path / "c"))
    assert result == (b"one", b"two", b"three")


def test_parse_certificate_files_missing(tmp_path):
    (tmp_path / "a").write_bytes(b"one")
    with pytest.raises(FileNotFoundError):
        parse_certificate_files(str(tmp_path / "a"), str(tmp_path / "missing"), str(tmp_path / "a"))