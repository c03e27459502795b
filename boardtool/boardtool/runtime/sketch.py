"""Sketch location and metadata."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from boardtool.constants import SKETCH_EXTENSION
from boardtool.primitives.errors import ConfigurationError

logger = logging.getLogger(__name__)

METADATA_FILE = "sketch.json"


@dataclass
class Sketch:
    """A sketch folder.

    Attributes:
        name: Sketch name (the folder name).
        full_path: Absolute path of the sketch folder.
        metadata: Parsed sketch.json content, empty when absent.
    """

    name: str
    full_path: Path
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def main_file(self) -> Path:
        return self.full_path / f"{self.name}{SKETCH_EXTENSION}"

    @property
    def metadata_fqbn(self) -> Optional[str]:
        """Board attached to the sketch in its metadata, if any."""
        cpu = self.metadata.get("cpu") or {}
        return cpu.get("fqbn") or None

    @classmethod
    def from_path(cls, path: Path) -> "Sketch":
        """Open the sketch at ``path`` (its folder or its main file).

        Raises:
            ConfigurationError: If no valid sketch is found or its metadata
                cannot be read.
        """
        path = Path(path).resolve()
        if path.is_file():
            path = path.parent
        if not path.is_dir():
            raise ConfigurationError(f"no valid sketch found in {path}", field="sketch_path")

        sketch = cls(name=path.name, full_path=path)
        if not sketch.main_file.is_file():
            raise ConfigurationError(
                f"no valid sketch found in {path}: missing {sketch.main_file.name}",
                field="sketch_path",
            )

        metadata_path = path / METADATA_FILE
        if metadata_path.is_file():
            try:
                sketch.metadata = json.loads(metadata_path.read_text(encoding="utf-8")) or {}
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"invalid sketch metadata {metadata_path}", field="sketch_path", cause=e
                ) from e
            cpu = (sketch.metadata.get("cpu") or {}) if isinstance(sketch.metadata, dict) else None
            if not isinstance(cpu, dict) or not isinstance(cpu.get("fqbn") or "", str):
                raise ConfigurationError(
                    f"invalid sketch metadata {metadata_path}: expected a mapping with a 'cpu' mapping",
                    field="sketch_path",
                )
            logger.debug("Loaded sketch metadata from %s", metadata_path)
        return sketch
