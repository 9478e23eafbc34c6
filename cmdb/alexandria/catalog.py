"""
CI Type catalog for Alexandria.

The CITypeCatalog holds the CI Types of one CMDB together with the CI
records stored against them. It provides:
- Creation of CI Types (validated, short name derived, identity assigned)
- Update by full replacement, keeping identity and creation time
- Deletion, which also discards every CI of that type
- Validated insertion of CI records

Invariants:
    - CI Type short names are unique within a catalog
    - Stored CI Types have passed CIType.validate()
    - Stored CI records have passed validate_record()
    - Renaming a CI Type moves its CI records to the new short name

How to change safely:
    - Keep all mutations under the catalog lock
    - Never store a CI Type or record that failed validation

Example:
    >>> catalog = CITypeCatalog("default")
    >>> server = catalog.add_citype(CIType(name="Server"))
    >>> catalog.get_citype("SERVER") == server
    True
"""

from __future__ import annotations

import copy
import logging
import threading
import time
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional

from .config import Settings
from .errors import DuplicateCITypeError, NotFoundError
from .schema import CIType, FormatRegistry, get_registry, validate_record

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class CITypeCatalog:
    """In-memory catalog of CI Types and their CI records.

    Thread-safety:
        - All reads and writes take the internal lock
        - Returned CI Types are immutable; returned records are copies

    Attributes:
        cmdb: Name of the CMDB this catalog belongs to
        strict: Reject CI records with unknown attributes
    """

    def __init__(
        self,
        cmdb: str = "default",
        registry: Optional[FormatRegistry] = None,
        strict: bool = True,
    ) -> None:
        self.cmdb = cmdb
        self.strict = strict
        self._registry = registry or get_registry()
        self._citypes: Dict[str, CIType] = {}
        self._cis: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls, settings: Settings, registry: Optional[FormatRegistry] = None
    ) -> CITypeCatalog:
        """Create a catalog named and configured by settings."""
        return cls(settings.cmdb_name, registry=registry, strict=settings.strict_records)

    def add_citype(self, citype: CIType) -> CIType:
        """Validate and store a new CI Type.

        Args:
            citype: CI Type as submitted

        Returns:
            The stored CI Type with id, created and modified set

        Raises:
            SchemaError: If the CI Type is invalid
            DuplicateCITypeError: If the short name is already taken
        """
        validated = citype.validate(self._registry)
        now = _now_ms()
        stored = replace(validated, id=uuid.uuid4().hex, created=now, modified=now)

        with self._lock:
            if stored.short_name in self._citypes:
                raise DuplicateCITypeError(stored.short_name)
            self._citypes[stored.short_name] = stored
            self._cis[stored.short_name] = []

        logger.info(f"Created CI Type '{stored.short_name}' in CMDB '{self.cmdb}'")
        return stored

    def get_citype(self, short_name: str) -> Optional[CIType]:
        """Get a CI Type by short name (case-insensitive)."""
        with self._lock:
            return self._citypes.get(short_name.lower())

    def list_citypes(self) -> List[CIType]:
        """All CI Types in creation order."""
        with self._lock:
            return list(self._citypes.values())

    def update_citype(self, short_name: str, citype: CIType) -> CIType:
        """Replace a CI Type.

        The short name is re-derived from the new name. Identity and
        creation time are carried over from the stored CI Type.

        Args:
            short_name: Short name of the CI Type to replace
            citype: New definition

        Returns:
            The stored replacement

        Raises:
            SchemaError: If the new definition is invalid
            NotFoundError: If no CI Type has that short name
            DuplicateCITypeError: If the new short name belongs to another CI Type
        """
        # Short name is always re-derived from the new name
        validated = replace(citype, short_name="").validate(self._registry)
        short_name = short_name.lower()

        with self._lock:
            original = self._citypes.get(short_name)
            if original is None:
                raise NotFoundError(
                    f"CI Type '{short_name}' not found in CMDB '{self.cmdb}'",
                    resource_type="citype",
                    resource_id=short_name,
                )

            updated = replace(
                validated,
                id=original.id,
                created=original.created,
                modified=_now_ms(),
            )
            if updated.short_name != short_name and updated.short_name in self._citypes:
                raise DuplicateCITypeError(updated.short_name)

            del self._citypes[short_name]
            self._citypes[updated.short_name] = updated
            self._cis[updated.short_name] = self._cis.pop(short_name)

        if updated.short_name != short_name:
            logger.info(
                f"Renamed CI Type '{short_name}' to '{updated.short_name}' in CMDB '{self.cmdb}'"
            )
        else:
            logger.info(f"Updated CI Type '{short_name}' in CMDB '{self.cmdb}'")
        return updated

    def delete_citype(self, short_name: str) -> None:
        """Delete a CI Type and all CI records of that type.

        Raises:
            NotFoundError: If no CI Type has that short name
        """
        short_name = short_name.lower()
        with self._lock:
            if short_name not in self._citypes:
                raise NotFoundError(
                    f"CI Type '{short_name}' not found in CMDB '{self.cmdb}'",
                    resource_type="citype",
                    resource_id=short_name,
                )
            del self._citypes[short_name]
            dropped = self._cis.pop(short_name, [])

        logger.info(
            f"Deleted CI Type '{short_name}' and {len(dropped)} CI(s) from CMDB '{self.cmdb}'"
        )

    def add_ci(self, short_name: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate a CI record and store it under its CI Type.

        Returns:
            Copy of the stored record (canonical values, short name keys)

        Raises:
            NotFoundError: If the CI Type does not exist
            ValidationError: If the record is invalid
        """
        citype = self.get_citype(short_name)
        if citype is None:
            raise NotFoundError(
                f"CI Type '{short_name}' not found in CMDB '{self.cmdb}'",
                resource_type="citype",
                resource_id=short_name.lower(),
            )

        values = validate_record(citype, record, self._registry, strict=self.strict)

        with self._lock:
            cis = self._cis.get(citype.short_name)
            if cis is None:
                raise NotFoundError(
                    f"CI Type '{citype.short_name}' was deleted",
                    resource_type="citype",
                    resource_id=citype.short_name,
                )
            cis.append(values)

        logger.debug(f"Stored CI of type '{citype.short_name}' in CMDB '{self.cmdb}'")
        return copy.deepcopy(values)

    def list_cis(self, short_name: str) -> List[Dict[str, Any]]:
        """Copies of all CI records of a CI Type.

        Raises:
            NotFoundError: If the CI Type does not exist
        """
        short_name = short_name.lower()
        with self._lock:
            if short_name not in self._cis:
                raise NotFoundError(
                    f"CI Type '{short_name}' not found in CMDB '{self.cmdb}'",
                    resource_type="citype",
                    resource_id=short_name,
                )
            return copy.deepcopy(self._cis[short_name])
