"""
Format Registry for Alexandria.

The FormatRegistry maps format names (the `type` of an attribute) to the
AttributeFormat that validates values of that type. It provides:
- Registration of formats by name
- Lookup by name
- Freeze mechanism to prevent runtime modifications

Invariants:
    - Registry is mutable during startup, frozen before validation starts
    - Once frozen, no new formats can be registered
    - Formats are never removed or replaced
    - Lookups never take the lock

How to change safely:
    - Register custom formats before calling freeze()
    - Pass the registry explicitly to schema and record validation
    - Use reset_registry() only in tests

Example:
    >>> registry = create_default_registry()
    >>> registry.get("boolean")
    BooleanFormat(name='boolean')
    >>> registry.get("i_dont_exist") is None
    True
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterator, Optional

from .formats import BUILTIN_FORMATS, AttributeFormat

logger = logging.getLogger(__name__)

# Global registry instance
_global_registry: Optional[FormatRegistry] = None
_registry_lock = threading.Lock()


class RegistryFrozenError(Exception):
    """Raised when attempting to modify a frozen registry."""
    pass


class DuplicateRegistrationError(Exception):
    """Raised when attempting to register a format name twice."""
    pass


class FormatRegistry:
    """Registry of attribute formats keyed by format name.

    Thread-safety:
        - Registration is thread-safe (uses internal lock)
        - Lookups are lock-free
        - Freeze is atomic and irreversible

    Example:
        >>> registry = FormatRegistry()
        >>> registry.register("string", StringFormat())
        >>> registry.freeze()
        >>> "string" in registry
        True
    """

    def __init__(self) -> None:
        """Initialize an empty, mutable registry."""
        self._formats: Dict[str, AttributeFormat] = {}
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        """Whether the registry is frozen."""
        return self._frozen

    def register(self, name: str, fmt: AttributeFormat) -> None:
        """Register a format under a name.

        Args:
            name: Format name as used in AttributeDef.type
            fmt: Format implementation

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If name is already registered
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"Cannot register format '{name}': registry is frozen"
                )

            if not name:
                raise ValueError("Format name cannot be empty")

            if name in self._formats:
                existing = self._formats[name]
                raise DuplicateRegistrationError(
                    f"Format '{name}' already registered as {existing!r}"
                )

            self._formats[name] = fmt
            logger.debug(f"Registered attribute format: {name} ({type(fmt).__name__})")

    def get(self, name: str) -> Optional[AttributeFormat]:
        """Get a format by name.

        Returns:
            AttributeFormat if registered, None otherwise
        """
        return self._formats.get(name)

    def names(self) -> list[str]:
        """Registered format names in registration order."""
        return list(self._formats)

    def freeze(self) -> None:
        """Freeze the registry.

        Raises:
            RegistryFrozenError: If already frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is already frozen")

            self._frozen = True
            logger.debug(f"Format registry frozen with formats: {', '.join(self._formats)}")

    def __contains__(self, name: object) -> bool:
        return name in self._formats

    def __iter__(self) -> Iterator[str]:
        return iter(self._formats)

    def __len__(self) -> int:
        return len(self._formats)


def create_default_registry(freeze: bool = False) -> FormatRegistry:
    """Create a registry holding the built-in formats.

    Args:
        freeze: Whether to freeze the registry before returning it

    Returns:
        New FormatRegistry with string, number, boolean, timestamp and group
    """
    registry = FormatRegistry()
    for format_cls in BUILTIN_FORMATS:
        registry.register(format_cls.name, format_cls())
    if freeze:
        registry.freeze()
    return registry


def get_registry() -> FormatRegistry:
    """Get the global format registry.

    Built on first use with the built-in formats, then frozen.

    Returns:
        Global FormatRegistry instance
    """
    global _global_registry
    with _registry_lock:
        if _global_registry is None:
            _global_registry = create_default_registry(freeze=True)
        return _global_registry


def get_attribute_format(name: str) -> Optional[AttributeFormat]:
    """Look up a format in the global registry."""
    return get_registry().get(name)


def reset_registry() -> None:
    """Reset the global registry (for testing only).

    Warning: This is intended for test cleanup only.
    Never use in production code.
    """
    global _global_registry
    with _registry_lock:
        _global_registry = None
