"""Key and value derivation strategies.

A backend never computes storage keys or values itself; it asks a
:class:`~persistkit_core.protocols.DerivationStrategy`.  Two concrete
strategies are provided:

* :class:`DefaultDerivation` -- ``"{path}:{content_hash}"`` keys and the
  node's JSON serialization as value.
* :class:`CallableDerivation` -- user-supplied functions, each falling back
  to the default when omitted.

Both wrap any failure in :class:`~persistkit_core.errors.DerivationError`.
"""

from __future__ import annotations

from typing import Callable

from persistkit_core.errors import DerivationError
from persistkit_core.models import Node

KeyFn = Callable[[Node], str]
ValueFn = Callable[[Node], str]


def default_key(node: Node) -> str:
    return f"{node.path}:{node.content_hash()}"


def default_value(node: Node) -> str:
    return node.to_json()


def apply_derivation(fn: Callable[[Node], str], node: Node, what: str) -> str:
    """Call *fn* on *node*, turning any failure into ``DerivationError``."""
    try:
        result = fn(node)
    except DerivationError:
        raise
    except Exception as exc:
        raise DerivationError(
            f"Failed to derive {what} for node path={node.path!r}: {exc}"
        ) from exc
    if not isinstance(result, str):
        raise DerivationError(
            f"{what.capitalize()} derivation returned {type(result).__name__}, expected str"
        )
    return result


class DefaultDerivation:
    """Path-plus-hash keys and full JSON values."""

    def derive_key(self, node: Node) -> str:
        return apply_derivation(default_key, node, "key")

    def derive_value(self, node: Node) -> str:
        return apply_derivation(default_value, node, "value")


class CallableDerivation:
    """Derivation backed by caller-supplied functions.

    Parameters
    ----------
    key_fn:
        Maps a node to its storage key.  Uses :func:`default_key` when *None*.
    value_fn:
        Maps a node to its storage value.  Uses :func:`default_value` when
        *None*.
    """

    def __init__(
        self,
        key_fn: KeyFn | None = None,
        value_fn: ValueFn | None = None,
    ) -> None:
        self._key_fn = key_fn or default_key
        self._value_fn = value_fn or default_value

    def derive_key(self, node: Node) -> str:
        return apply_derivation(self._key_fn, node, "key")

    def derive_value(self, node: Node) -> str:
        return apply_derivation(self._value_fn, node, "value")


def build_derivation(
    key_fn: KeyFn | None = None,
    value_fn: ValueFn | None = None,
) -> DefaultDerivation | CallableDerivation:
    """Select the strategy for the given overrides."""
    if key_fn is None and value_fn is None:
        return DefaultDerivation()
    return CallableDerivation(key_fn=key_fn, value_fn=value_fn)
