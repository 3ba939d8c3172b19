"""
YAML schema file loader with per-path caching.

Usage::

    from versionaware.loader import SchemaRegistryLoader

    loader = SchemaRegistryLoader()
    spec = loader.load(Path("person.schema.yaml"))
    registry = loader.load_registry(Path("person.schema.yaml"))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar

import yaml

from versionaware.registry import SchemaRegistry
from versionaware.schema import SchemaRegistrySpec

logger = logging.getLogger(__name__)


class SchemaRegistryLoader:
    """Loads and caches schema registry files from YAML."""

    _cache: ClassVar[dict[str, SchemaRegistrySpec]] = {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the schema file cache (useful in tests)."""
        cls._cache.clear()

    def load(self, path: Path) -> SchemaRegistrySpec:
        """Load a schema file.

        Args:
            path: Path to the YAML schema file.

        Returns:
            Validated ``SchemaRegistrySpec`` instance.

        Raises:
            FileNotFoundError: If the file does not exist.
            TypeError: If the YAML root is not a mapping.
            yaml.YAMLError: If the file contains invalid YAML.
            pydantic.ValidationError: If the YAML does not match the schema.
        """
        key = str(path.resolve())
        if key in self._cache:
            logger.debug("Schema file cache hit: %s", key)
            return self._cache[key]

        if not path.exists():
            raise FileNotFoundError(f"Schema file not found: {path}")

        with open(path) as fh:
            raw = yaml.safe_load(fh)

        spec = self._validate(raw, str(path))
        self._cache[key] = spec

        logger.debug(
            "Loaded schema file: name=%s, versions=%d",
            spec.name,
            len(spec.versions),
        )
        return spec

    def load_from_string(self, yaml_str: str) -> SchemaRegistrySpec:
        """Load a schema file from a YAML string (convenience for testing)."""
        raw = yaml.safe_load(yaml_str)
        return self._validate(raw, "<string>")

    def load_registry(self, path: Path) -> SchemaRegistry:
        """Load a schema file and register its versions in order.

        Raises:
            DuplicateVersionError: If the file lists a version twice.
            OutOfOrderVersionError: If versions are not ascending.
        """
        return SchemaRegistry.from_spec(self.load(path))

    @staticmethod
    def _validate(raw: object, source: str) -> SchemaRegistrySpec:
        if not isinstance(raw, dict):
            raise TypeError(
                f"Expected YAML mapping at root of {source}, "
                f"got {type(raw).__name__}"
            )
        return SchemaRegistrySpec.model_validate(raw)
