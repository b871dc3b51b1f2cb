"""
Schema registry for the Campaign Taxonomy Validator.

This module provides:
- An injectable in-memory store of token schemas keyed by platform
- Version history per platform (every save is a new revision)
- Consistent snapshots for concurrent readers
- Seeding from the YAML platform rules file
"""

import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from ..core.logging import get_logger
from .entities import MalformedSchemaError, SchemaVersion, TokenPositionSchema


logger = get_logger("models.repositories")


class SchemaRegistry:
    """Platform → schema history store.

    Writes are serialized with a lock; readers get immutable schema snapshots,
    so a validation in flight never sees a half-written schema.
    """

    def __init__(self):
        self._history: dict[str, list[SchemaVersion]] = {}
        self._lock = threading.RLock()

    def save(
        self,
        schema: TokenPositionSchema,
        changelog: str = "",
        created_by: str = "system",
    ) -> SchemaVersion:
        """Store a schema as the newest version for its platform (last write wins)."""
        with self._lock:
            history = self._history.setdefault(schema.platform, [])
            entry = SchemaVersion(
                platform=schema.platform,
                version=len(history) + 1,
                schema=schema,
                created_by=created_by,
                changelog=changelog or "Rule updates",
            )
            history.append(entry)
            return entry

    def get(self, platform: str, version: int | None = None) -> TokenPositionSchema | None:
        """Get the latest schema for a platform, or a specific version."""
        entry = self.get_version(platform, version)
        return entry.schema if entry else None

    def get_version(self, platform: str, version: int | None = None) -> SchemaVersion | None:
        with self._lock:
            history = self._history.get(platform)
            if not history:
                return None
            if version is None:
                return history[-1]
            if 1 <= version <= len(history):
                return history[version - 1]
            return None

    def versions(self, platform: str) -> list[SchemaVersion]:
        with self._lock:
            return list(self._history.get(platform, []))

    def platforms(self) -> list[str]:
        with self._lock:
            return list(self._history)

    def latest(self) -> list[SchemaVersion]:
        """Latest version of every platform schema, in insertion order."""
        with self._lock:
            return [history[-1] for history in self._history.values()]

    def delete(self, platform: str) -> bool:
        with self._lock:
            return self._history.pop(platform, None) is not None

    def clear(self):
        with self._lock:
            self._history.clear()

    def __contains__(self, platform: str) -> bool:
        with self._lock:
            return platform in self._history

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def load_platforms(self, platforms: Mapping[str, Any], created_by: str = "seed") -> int:
        """
        Load schemas from a ``{platform: {token_positions: [...]}}`` mapping.

        Raises:
            MalformedSchemaError: If any platform entry is malformed
        """
        loaded = 0
        for platform, entry in platforms.items():
            positions = _positions_from_entry(platform, entry)
            schema = TokenPositionSchema.from_positions(platform, positions)
            self.save(schema, changelog="Initial version with basic token positions", created_by=created_by)
            loaded += 1
        return loaded

    def load_from_yaml(self, file_path: str | Path) -> int:
        """
        Seed the registry from a YAML rules file.

        A missing file is logged and ignored.

        Returns:
            Number of platform schemas loaded
        """
        path = Path(file_path)
        if not path.exists():
            logger.warning("Platform rules file not found, no schemas seeded", file_path=str(path))
            return 0

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        platforms = data.get("platforms", {})
        if not isinstance(platforms, Mapping):
            raise MalformedSchemaError(f"'platforms' in {path} must be a mapping")

        loaded = self.load_platforms(platforms)
        logger.info(
            "Platform rules loaded successfully",
            file_path=str(path),
            platforms=list(platforms.keys()),
            version=data.get("version", "unknown"),
        )
        return loaded


def _positions_from_entry(platform: str, entry: Any) -> Iterable[Mapping[str, Any]]:
    if isinstance(entry, Mapping):
        positions = entry.get("token_positions", entry.get("tokenPositions"))
    else:
        positions = entry
    if not isinstance(positions, list):
        raise MalformedSchemaError(f"Platform {platform!r} must define a token_positions list")
    return positions
