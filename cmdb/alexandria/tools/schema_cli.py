"""
Schema CLI tool for Alexandria.

This tool checks CI Type definitions and CI records offline:
- validate: Validate CI Type files and print the normalized definitions
- check-record: Validate a CI record against a CI Type
- formats: List the registered attribute formats

Usage:
    alexandria-schema validate citypes/server.yaml
    alexandria-schema check-record --citype citypes/server.yaml web01.yaml
    alexandria-schema formats

CI Type files may be YAML or JSON and hold a single CI Type, a list of
CI Types, or a mapping with a 'citypes' list.

Invariants:
    - Invalid input causes a non-zero exit code
    - Output is deterministic JSON on stdout; logs go to stderr
    - Error messages are printed exactly as raised

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format stable for CI parsing
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from ..config import Settings, get_settings, load_settings
from ..errors import AlexandriaError
from ..log import setup_logging
from ..schema import CIType, FormatRegistry, get_registry, validate_record

logger = logging.getLogger(__name__)


class SchemaCLI:
    """CLI tool for CI Type and CI record validation.

    Example:
        >>> cli = SchemaCLI()
        >>> citypes = cli.validate(["server.yaml"])
        >>> cli.check_record("server.yaml", "web01.yaml")
        {'hostname': 'web01', ...}
    """

    def __init__(
        self,
        registry: Optional[FormatRegistry] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.registry = registry or get_registry()
        self.settings = settings or get_settings()

    def load_citypes(self, path: str | Path) -> list[CIType]:
        """Load CI Type definitions from a YAML or JSON file.

        Args:
            path: File path

        Returns:
            List of CI Types as written (not yet validated)

        Raises:
            ValueError: If the file layout is not recognized
        """
        data = _load_file(path)
        if isinstance(data, dict) and "citypes" in data:
            data = data["citypes"]
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
            raise ValueError(f"{path}: expected a CI Type mapping or a list of them")
        return [CIType.from_dict(d) for d in data]

    def validate(self, paths: Sequence[str | Path]) -> list[CIType]:
        """Validate every CI Type in the given files.

        Returns:
            Normalized CI Types, in file order

        Raises:
            SchemaError: On the first invalid CI Type
        """
        validated = []
        for path in paths:
            for citype in self.load_citypes(path):
                validated.append(citype.validate(self.registry))
                logger.debug(f"{path}: CI Type '{validated[-1].short_name}' is valid")
        return validated

    def check_record(
        self,
        citype_path: str | Path,
        record_path: str | Path,
        type_name: Optional[str] = None,
    ) -> dict[str, Any]:
        """Validate a CI record against a CI Type.

        Args:
            citype_path: File with the CI Type definition(s)
            record_path: File with the CI record
            type_name: Short name of the CI Type, when the file holds several

        Returns:
            Canonical record

        Raises:
            SchemaError: If the CI Type is invalid
            ValidationError: If the record is invalid
            ValueError: If the CI Type cannot be selected
        """
        citypes = self.validate([citype_path])
        if type_name:
            matches = [c for c in citypes if c.short_name == type_name.lower()]
        else:
            matches = citypes
        if len(matches) != 1:
            names = ", ".join(c.short_name for c in citypes)
            raise ValueError(f"{citype_path}: select one CI Type with --type (found: {names})")

        record = _load_file(record_path)
        return validate_record(
            matches[0], record, self.registry, strict=self.settings.strict_records
        )

    def formats(self) -> list[str]:
        """Registered format names."""
        return self.registry.names()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for schema tool."""
    parser = argparse.ArgumentParser(description="Alexandria CI Type schema tool")
    parser.add_argument("--config", help="YAML or JSON config file")
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Validate CI Type definitions")
    validate_parser.add_argument("files", nargs="+", help="CI Type files (YAML or JSON)")

    # check-record command
    record_parser = subparsers.add_parser("check-record", help="Validate a CI record")
    record_parser.add_argument("--citype", "-c", required=True, help="CI Type file")
    record_parser.add_argument("--type", "-t", help="CI Type short name, if the file has several")
    record_parser.add_argument("record", help="CI record file (YAML or JSON)")

    # formats command
    subparsers.add_parser("formats", help="List registered attribute formats")

    args = parser.parse_args(argv)

    settings = load_settings(args.config) if args.config else get_settings()
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level})
    setup_logging(settings)

    cli = SchemaCLI(settings=settings)

    try:
        if args.command == "validate":
            citypes = cli.validate(args.files)
            print(json.dumps([c.to_dict() for c in citypes], indent=2))

        elif args.command == "check-record":
            record = cli.check_record(args.citype, args.record, args.type)
            print(json.dumps(record, indent=2))

        elif args.command == "formats":
            for name in cli.formats():
                print(name)

    except (AlexandriaError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def _load_file(path: str | Path) -> Any:
    # JSON is a subset of YAML
    with open(path) as f:
        return yaml.safe_load(f)


if __name__ == "__main__":
    sys.exit(main())
