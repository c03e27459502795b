"""Debug request and response messages."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class DebugRequest:
    """Parameters of a debug session.

    Attributes:
        instance: Id of the registry instance to resolve boards against.
        sketch_path: Sketch folder (or main file).
        fqbn: Board identifier; falls back to the sketch metadata.
        port: Debug/upload port (e.g. "/dev/ttyACM0", "COM3").
        interpreter: Debugger interpreter mode (default "console").
        import_dir: Compiled sketch folder; defaults to
            ``<sketch>/build/<fqbn without config, ':' -> '.'>``.
        import_file: Deprecated. Rejected when non-empty.
    """

    sketch_path: str = ""
    instance: int = 0
    fqbn: str = ""
    port: str = ""
    interpreter: str = ""
    import_dir: str = ""
    import_file: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DebugRequest":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class DebugResponse:
    """Outcome of a debug session that got as far as running the tool.

    ``error`` carries run-phase failures (spawn failure, abnormal exit).
    Construction failures are raised instead and never produce a response.
    """

    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "error": self.error}
