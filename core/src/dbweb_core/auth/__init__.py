from __future__ import annotations

from dbweb_core.auth.providers import (
    AuthProvider,
    AuthProviderDescriptor,
    AuthProviderRegistry,
    FederatedAuthProvider,
    build_default_registry,
    check_provider_configurations,
    validate_provider_parameters,
)

__all__ = [
    "AuthProvider",
    "AuthProviderDescriptor",
    "AuthProviderRegistry",
    "FederatedAuthProvider",
    "build_default_registry",
    "check_provider_configurations",
    "validate_provider_parameters",
]
