"""
Credential sources and provider configuration.

A ProviderConfig names a secret; a CredentialSource turns that reference into
a raw payload; `parse_credentials` decodes the payload, a flat JSON object:

    {"username": "cassandra", "password": "cassandra",
     "endpoint": "localhost", "port": "9042"}

Functions here do not log secret values.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from src.constants import DEFAULT_CQL_PORT
from src.cql_engine.errors import CredentialsError

_REQUIRED_KEYS = ("username", "password", "endpoint")


@dataclass(frozen=True)
class SecretReference:
    """Location of a credentials payload: one key of one namespaced secret."""

    namespace: str
    name: str
    key: str = "credentials"


@dataclass(frozen=True)
class ProviderConfig:
    """Connection target for a group of resources."""

    name: str
    secret_ref: SecretReference


@dataclass(frozen=True)
class ConnectionCredentials:
    """Decoded credential bundle used to open a session."""

    username: str
    password: str
    endpoint: str
    port: int = DEFAULT_CQL_PORT

    def __repr__(self) -> str:
        return (
            f"ConnectionCredentials(username={self.username!r}, password='***', "
            f"endpoint={self.endpoint!r}, port={self.port})"
        )


class CredentialSource(Protocol):
    """Port for implementations that can fetch a raw credentials payload."""

    def get(self, reference: SecretReference) -> bytes: ...


def parse_credentials(payload: bytes) -> ConnectionCredentials:
    """
    Decode a JSON credentials payload.

    Raises:
        CredentialsError: if the payload is not a JSON object of strings,
            lacks a required key, or carries a non-numeric port.
    """
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as err:
        raise CredentialsError("failed to parse credentials JSON") from err

    if not isinstance(data, Mapping):
        raise CredentialsError("failed to parse credentials JSON: expected an object")

    missing = [key for key in _REQUIRED_KEYS if not data.get(key)]
    if missing:
        raise CredentialsError(f"credentials missing required keys: {', '.join(missing)}")

    raw_port = data.get("port") or DEFAULT_CQL_PORT
    try:
        port = int(raw_port)
    except (TypeError, ValueError) as err:
        raise CredentialsError(f"credentials port is not a number: {raw_port!r}") from err

    return ConnectionCredentials(
        username=str(data["username"]),
        password=str(data["password"]),
        endpoint=str(data["endpoint"]),
        port=port,
    )


class StaticCredentialSource:
    """In-memory source keyed by (namespace, name, key); handy for local runs and tests."""

    def __init__(self, payloads: Mapping[SecretReference, bytes]) -> None:
        self._payloads = dict(payloads)

    def get(self, reference: SecretReference) -> bytes:
        try:
            return self._payloads[reference]
        except KeyError as err:
            raise CredentialsError(
                f"no credentials stored for secret {reference.namespace}/{reference.name}"
            ) from err


class KubernetesSecretSource:
    """Read credentials from a Kubernetes Secret (base64-encoded data key)."""

    def __init__(self, core_v1_api=None) -> None:
        if core_v1_api is None:
            from kubernetes import client, config

            try:
                config.load_incluster_config()
            except config.ConfigException:
                config.load_kube_config()
            core_v1_api = client.CoreV1Api()
        self._api = core_v1_api

    def get(self, reference: SecretReference) -> bytes:
        from kubernetes.client.rest import ApiException

        try:
            secret = self._api.read_namespaced_secret(reference.name, reference.namespace)
        except ApiException as err:
            raise CredentialsError(
                f"cannot read secret {reference.namespace}/{reference.name}"
            ) from err

        encoded = (secret.data or {}).get(reference.key)
        if encoded is None:
            raise CredentialsError(
                f"secret {reference.namespace}/{reference.name} has no key {reference.key!r}"
            )
        try:
            return base64.b64decode(encoded, validate=True)
        except binascii.Error as err:
            raise CredentialsError(
                f"secret {reference.namespace}/{reference.name} key {reference.key!r} is not valid base64"
            ) from err
