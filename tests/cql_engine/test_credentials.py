from __future__ import annotations

import base64
import json
from types import SimpleNamespace

import pytest
from kubernetes.client.rest import ApiException

from src.cql_engine.credentials import (
    ConnectionCredentials,
    KubernetesSecretSource,
    SecretReference,
    StaticCredentialSource,
    parse_credentials,
)
from src.cql_engine.errors import ConnectError, CredentialsError

REF = SecretReference(namespace="crossplane-system", name="cassandra-creds")


def payload(**overrides) -> bytes:
    data = {"username": "cassandra", "password": "pw", "endpoint": "db.local", "port": "9142"}
    data.update(overrides)
    return json.dumps(data).encode("utf-8")


# ---------- parse_credentials ----------


def test_parse_credentials_reads_all_fields():
    creds = parse_credentials(payload())
    assert creds == ConnectionCredentials("cassandra", "pw", "db.local", 9142)


def test_parse_credentials_defaults_port():
    raw = json.dumps({"username": "u", "password": "p", "endpoint": "h"}).encode()
    assert parse_credentials(raw).port == 9042


@pytest.mark.parametrize("raw", [b"not json", b"\xff\xfe", b"[1, 2]"])
def test_parse_credentials_rejects_malformed_payload(raw):
    with pytest.raises(CredentialsError, match="failed to parse credentials JSON"):
        parse_credentials(raw)


def test_parse_credentials_names_missing_keys():
    with pytest.raises(CredentialsError, match="username, endpoint"):
        parse_credentials(payload(username="", endpoint=""))


def test_parse_credentials_rejects_bad_port():
    with pytest.raises(CredentialsError, match="not a number"):
        parse_credentials(payload(port="ninety"))


def test_credentials_error_is_a_connect_error():
    assert issubclass(CredentialsError, ConnectError)


def test_repr_masks_password():
    text = repr(ConnectionCredentials("u", "hunter2", "h"))
    assert "hunter2" not in text
    assert "'***'" in text


# ---------- StaticCredentialSource ----------


def test_static_source_returns_payload():
    source = StaticCredentialSource({REF: b"{}"})
    assert source.get(REF) == b"{}"


def test_static_source_missing_reference():
    with pytest.raises(CredentialsError, match="crossplane-system/cassandra-creds"):
        StaticCredentialSource({}).get(REF)


# ---------- KubernetesSecretSource ----------


class FakeCoreV1Api:
    def __init__(self, data=None, error: Exception | None = None) -> None:
        self.data = data
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def read_namespaced_secret(self, name: str, namespace: str):
        self.calls.append((name, namespace))
        if self.error:
            raise self.error
        return SimpleNamespace(data=self.data)


def test_kubernetes_source_decodes_secret_key():
    encoded = base64.b64encode(payload()).decode("ascii")
    api = FakeCoreV1Api(data={"credentials": encoded})

    raw = KubernetesSecretSource(core_v1_api=api).get(REF)

    assert api.calls == [("cassandra-creds", "crossplane-system")]
    assert parse_credentials(raw).endpoint == "db.local"


def test_kubernetes_source_missing_key():
    api = FakeCoreV1Api(data={"other": "e30="})
    with pytest.raises(CredentialsError, match="has no key 'credentials'"):
        KubernetesSecretSource(core_v1_api=api).get(REF)


def test_kubernetes_source_wraps_api_errors():
    api = FakeCoreV1Api(error=ApiException(status=404, reason="Not Found"))
    with pytest.raises(CredentialsError, match="cannot read secret") as excinfo:
        KubernetesSecretSource(core_v1_api=api).get(REF)
    assert isinstance(excinfo.value.__cause__, ApiException)


def test_kubernetes_source_rejects_invalid_base64():
    api = FakeCoreV1Api(data={"credentials": "not*base64!"})
    with pytest.raises(CredentialsError, match="is not valid base64") as excinfo:
        KubernetesSecretSource(core_v1_api=api).get(REF)
    assert isinstance(excinfo.value, ConnectError)
