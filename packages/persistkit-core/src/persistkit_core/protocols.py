"""Backend protocols for persistkit.

Defines the structural-subtyping interfaces that pipelines depend on and
that concrete backends satisfy.  All protocols are ``@runtime_checkable`` so
callers can optionally verify conformance with ``isinstance`` checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, AsyncIterator, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from persistkit_core.models import Node, PersistOutcome


@runtime_checkable
class DerivationStrategy(Protocol):
    """Maps a node to the key and value it is stored under."""

    def derive_key(self, node: Node) -> str:
        """Return the storage key for *node*. Raises ``DerivationError``."""
        ...

    def derive_value(self, node: Node) -> str:
        """Return the storage value for *node*. Raises ``DerivationError``."""
        ...


@runtime_checkable
class ConnectionProvider(Protocol):
    """Lazily opens and reuses a connection to a store."""

    async def acquire(self) -> Any | None:
        """Return a ready connection, or None if the store is unreachable."""
        ...

    async def aclose(self) -> None:
        """Close the connection, if one is open."""
        ...


@runtime_checkable
class PersistBackend(Protocol):
    """Interface for pipeline persistence backends (e.g. Redis)."""

    async def setup(self) -> None:
        """Provision anything the backend needs before first use."""
        ...

    def batch_size(self) -> int | None:
        """Preferred number of nodes per ``batch_store`` call."""
        ...

    async def store(self, node: Node) -> Node:
        """Persist a single node and return it unchanged."""
        ...

    def batch_store(self, nodes: Sequence[Node]) -> AsyncIterator[PersistOutcome]:
        """Persist *nodes* in one bulk write, yielding per-node outcomes."""
        ...
