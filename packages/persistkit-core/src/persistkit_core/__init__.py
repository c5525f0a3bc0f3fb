"""persistkit-core -- Shared primitives for persistkit backends.

Re-exports all public types: errors, models, derivation strategies, and
protocols.
"""

from persistkit_core.derivation import (
    CallableDerivation,
    DefaultDerivation,
    apply_derivation,
    build_derivation,
    default_key,
    default_value,
)
from persistkit_core.errors import (
    DerivationError,
    PersistConnectionError,
    PersistError,
    PersistErrorCode,
    PersistException,
    StoreError,
)
from persistkit_core.models import Node, PersistOutcome
from persistkit_core.protocols import (
    ConnectionProvider,
    DerivationStrategy,
    PersistBackend,
)

__all__ = [
    # Errors
    "PersistErrorCode",
    "PersistError",
    "PersistException",
    "PersistConnectionError",
    "DerivationError",
    "StoreError",
    # Models
    "Node",
    "PersistOutcome",
    # Derivation
    "DefaultDerivation",
    "CallableDerivation",
    "build_derivation",
    "apply_derivation",
    "default_key",
    "default_value",
    # Protocols
    "DerivationStrategy",
    "ConnectionProvider",
    "PersistBackend",
]
