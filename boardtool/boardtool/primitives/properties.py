"""Ordered property store for vendor platform configuration.

Vendor packages describe boards, platforms and tools with flat
``dotted.key=value`` files (platform.txt, boards.txt, ...). Values may
reference other keys with ``{other.key}`` placeholders, which are resolved
against the fully merged store at expansion time.
"""

import re
import sys
from os import PathLike
from pathlib import Path, PurePath
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

# Placeholder expansion stops after this many passes even if values keep
# producing new placeholders (self-referencing keys).
MAX_EXPANSION_PASSES = 10

_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")

_OS_SUFFIXES = {
    "linux": "linux",
    "darwin": "macosx",
    "win32": "windows",
    "cygwin": "windows",
}


def host_os_suffix(platform: Optional[str] = None) -> str:
    """Return the property-file OS suffix for ``platform`` (default: host)."""
    platform = platform or sys.platform
    for prefix, suffix in _OS_SUFFIXES.items():
        if platform.startswith(prefix):
            return suffix
    return platform


class PropertyStore:
    """Ordered mapping of dotted string keys to string values.

    Insertion order of new keys is preserved. Setting an existing key keeps
    its original position.
    """

    def __init__(self, items: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = {}
        if items:
            for key, value in items.items():
                self.set(key, value)

    # Loading

    @classmethod
    def loads(cls, text: str, os_suffix: Optional[str] = None) -> "PropertyStore":
        """Parse ``key=value`` property text.

        Blank lines and ``#`` comments are skipped. Whitespace around keys
        and values is trimmed. A key ending in the host OS suffix
        (``.linux``, ``.windows``, ``.macosx``) overrides the plain key.

        Raises:
            ValueError: If a non-comment line has no ``=``.
        """
        suffix = "." + (os_suffix or host_os_suffix())
        store = cls()
        overrides: Dict[str, str] = {}

        for lineno, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                raise ValueError(f"invalid line format at line {lineno}, should be 'key=value'")
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
            store.set(key, value)
            if key.endswith(suffix):
                overrides[key[: -len(suffix)]] = value

        for key, value in overrides.items():
            store.set(key, value)
        return store

    @classmethod
    def load(cls, path: Union[str, PathLike], os_suffix: Optional[str] = None) -> "PropertyStore":
        """Load a property file from ``path``.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file is malformed.
        """
        path = Path(path)
        try:
            return cls.loads(path.read_text(encoding="utf-8"), os_suffix=os_suffix)
        except ValueError as e:
            raise ValueError(f"{path}: {e}") from e

    # Access

    def get(self, key: str, default: str = "") -> str:
        """Return the value for ``key`` or ``default`` when absent."""
        return self._data.get(key, default)

    def get_ok(self, key: str) -> Tuple[str, bool]:
        """Return ``(value, present)`` for ``key``."""
        if key in self._data:
            return self._data[key], True
        return "", False

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def set_path(self, key: str, path: Union[str, PathLike]) -> None:
        """Store a filesystem path with forward-slash separators."""
        if not isinstance(path, PurePath):
            path = PurePath(path)
        self._data[key] = path.as_posix()

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return self._data.keys()

    def items(self):
        return self._data.items()

    def as_dict(self) -> Dict[str, str]:
        return dict(self._data)

    def copy(self) -> "PropertyStore":
        return PropertyStore(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertyStore):
            return NotImplemented
        return list(self._data.items()) == list(other._data.items())

    def __repr__(self) -> str:
        return f"PropertyStore({self._data!r})"

    # Layering

    def merge(self, *others: "PropertyStore") -> "PropertyStore":
        """Merge ``others`` into this store in order; later values win.

        Returns:
            self, for chaining.
        """
        for other in others:
            if other is None:
                continue
            for key, value in other.items():
                self._data[key] = value
        return self

    def subtree(self, prefix: str) -> "PropertyStore":
        """Return the keys under ``prefix`` with the prefix stripped.

        ``prefix`` may be given with or without the trailing dot. The
        receiver is not modified.
        """
        if not prefix.endswith("."):
            prefix += "."
        sub = PropertyStore()
        for key, value in self._data.items():
            if key.startswith(prefix):
                sub.set(key[len(prefix):], value)
        return sub

    def first_level_of(self) -> Dict[str, "PropertyStore"]:
        """Group keys by their first dotted component.

        ``uno.name=Arduino Uno`` becomes ``{"uno": {"name": "Arduino Uno"}}``.
        Keys without a dot are skipped.
        """
        groups: Dict[str, PropertyStore] = {}
        for key, value in self._data.items():
            if "." not in key:
                continue
            head, rest = key.split(".", 1)
            groups.setdefault(head, PropertyStore()).set(rest, value)
        return groups

    # Templates

    def expand(self, template: str) -> str:
        """Replace every ``{key}`` in ``template`` with its current value.

        Values are expanded again until the string stops changing, up to
        MAX_EXPANSION_PASSES passes. Placeholders naming absent keys are
        left verbatim.
        """

        def replace(match: "re.Match[str]") -> str:
            return self._data.get(match.group(1), match.group(0))

        for _ in range(MAX_EXPANSION_PASSES):
            expanded = _PLACEHOLDER_RE.sub(replace, template)
            if expanded == template:
                break
            template = expanded
        return template
