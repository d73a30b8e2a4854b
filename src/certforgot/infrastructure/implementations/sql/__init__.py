"""Relational database infrastructure implementations."""

from certforgot.infrastructure.implementations.sql.state_repository import (
    SqlStateRepository,
)

__all__ = ["SqlStateRepository"]
