"""Authentication provider registry.

Providers are described statically by an :class:`AuthProviderDescriptor` and
instantiated lazily. A provider whose sign-in flow is hosted by an external
identity provider implements :class:`FederatedAuthProvider`.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlencode, urlsplit, urlunsplit

from jsonschema import Draft202012Validator

from dbweb_core.config import CoreConfig

LOCAL_PROVIDER_ID = "local"
REDIRECT_PROVIDER_ID = "redirect"


class AuthProvider(Protocol):
    id: str


@runtime_checkable
class FederatedAuthProvider(Protocol):
    id: str

    def get_sign_in_link(self, config_id: str, params: Mapping[str, Any]) -> str | None: ...


@dataclass
class AuthProviderDescriptor:
    id: str
    label: str
    configurable: bool
    factory: Callable[[], AuthProvider]
    parameters_schema: dict[str, Any] | None = None
    _instance: AuthProvider | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get_instance(self) -> AuthProvider:
        with self._lock:
            if self._instance is None:
                self._instance = self.factory()
            return self._instance

    @property
    def federated(self) -> bool:
        return isinstance(self.get_instance(), FederatedAuthProvider)


class AuthProviderRegistry:
    def __init__(self) -> None:
        self._descriptors: dict[str, AuthProviderDescriptor] = {}
        self._lock = threading.Lock()

    def register(self, descriptor: AuthProviderDescriptor) -> None:
        with self._lock:
            self._descriptors[descriptor.id] = descriptor

    def get(self, provider_id: str) -> AuthProviderDescriptor | None:
        with self._lock:
            return self._descriptors.get(provider_id)

    def descriptors(self) -> list[AuthProviderDescriptor]:
        with self._lock:
            out = list(self._descriptors.values())
        out.sort(key=lambda d: d.id.casefold())
        return out


class LocalAuthProvider:
    """In-process sign-in with the install token."""

    id = LOCAL_PROVIDER_ID


class RedirectAuthProvider:
    """Federated provider that sends the user to a configured sign-in URL.

    Configuration parameters:
    - ``sign_in_url`` (required): the identity provider's login endpoint
    - ``client_id`` (optional): appended to the query string
    """

    id = REDIRECT_PROVIDER_ID

    def __init__(self, config_source: Callable[[], CoreConfig]) -> None:
        self._config_source = config_source

    def get_sign_in_link(self, config_id: str, params: Mapping[str, Any]) -> str | None:
        provider_config = self._config_source().auth.configurations.get(config_id)
        if provider_config is None or provider_config.provider != self.id:
            return None

        url = str(provider_config.parameters.get("sign_in_url") or "").strip()
        if not url:
            return None

        query: dict[str, Any] = {}
        client_id = provider_config.parameters.get("client_id")
        if client_id:
            query["client_id"] = client_id
        query.update(params)
        if not query:
            return url

        parts = urlsplit(url)
        extra = urlencode(query, doseq=True)
        merged = f"{parts.query}&{extra}" if parts.query else extra
        return urlunsplit((parts.scheme, parts.netloc, parts.path, merged, parts.fragment))


REDIRECT_PARAMETERS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["sign_in_url"],
    "properties": {
        "sign_in_url": {"type": "string", "minLength": 1},
        "client_id": {"type": "string"},
    },
}


def validate_provider_parameters(
    schema: dict[str, Any], parameters: Mapping[str, Any]
) -> list[dict[str, Any]]:
    validator = Draft202012Validator(schema)
    errors: list[dict[str, Any]] = []
    for e in validator.iter_errors(dict(parameters)):
        errors.append(
            {
                "path": list(e.path),
                "message": e.message,
                "validator": e.validator,
            }
        )
    errors.sort(key=lambda err: ("/".join(map(str, err.get("path", []))), err.get("message", "")))
    return errors


def check_provider_configurations(
    config: CoreConfig, registry: AuthProviderRegistry
) -> dict[str, list[dict[str, Any]]]:
    """Validate every enabled provider configuration against its provider's schema.

    Returns a mapping of configuration id to errors; valid configurations are
    omitted. A configuration naming an unregistered provider is reported too.
    """

    problems: dict[str, list[dict[str, Any]]] = {}
    for config_id, provider_config in config.auth.configurations.items():
        if provider_config.disabled:
            continue
        descriptor = registry.get(provider_config.provider)
        if descriptor is None:
            problems[config_id] = [
                {
                    "path": ["provider"],
                    "message": f"Unknown auth provider {provider_config.provider!r}",
                    "validator": "provider",
                }
            ]
            continue
        if descriptor.parameters_schema is None:
            continue
        errors = validate_provider_parameters(
            descriptor.parameters_schema, provider_config.parameters
        )
        if errors:
            problems[config_id] = errors
    return problems


def build_default_registry(config_source: Callable[[], CoreConfig]) -> AuthProviderRegistry:
    registry = AuthProviderRegistry()
    registry.register(
        AuthProviderDescriptor(
            id=LOCAL_PROVIDER_ID,
            label="Local",
            configurable=False,
            factory=LocalAuthProvider,
        )
    )
    registry.register(
        AuthProviderDescriptor(
            id=REDIRECT_PROVIDER_ID,
            label="External sign-in",
            configurable=True,
            factory=lambda: RedirectAuthProvider(config_source),
            parameters_schema=REDIRECT_PARAMETERS_SCHEMA,
        )
    )
    return registry
