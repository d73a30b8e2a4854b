"""
Infrastructure layer for certificate and identity operations.

This module provides repository interfaces and implementations for:
- Certificate sources (local file, live TLS handshake, Azure Key Vault)
- Certificate installers (local file, Azure Key Vault)
- Identity state (local file, SQL database, Azure Blob, Azure Key Vault)

Backends are built from configuration descriptors via InfrastructureFactory.
"""

from certforgot.infrastructure.factory import InfrastructureFactory

__all__ = ["InfrastructureFactory"]
