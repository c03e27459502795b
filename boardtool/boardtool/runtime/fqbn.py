"""Fully Qualified Board Name parsing.

Format: ``package:architecture:board_id[:option=value,option=value]``
"""

from dataclasses import dataclass, field
from typing import Dict

from boardtool.primitives.errors import ConfigurationError


@dataclass(frozen=True)
class FQBN:
    """A parsed board identifier.

    Attributes:
        package: Vendor package name (e.g. "arduino").
        architecture: Platform architecture (e.g. "samd").
        board_id: Board id within the platform (e.g. "mkr1000").
        configs: Board config options in declaration order.
    """

    package: str
    architecture: str
    board_id: str
    configs: Dict[str, str] = field(default_factory=dict, hash=False)

    @classmethod
    def parse(cls, fqbn: str) -> "FQBN":
        """Parse ``fqbn``.

        Raises:
            ConfigurationError: If the string is not a valid FQBN.
        """
        parts = fqbn.split(":")
        if len(parts) < 3 or len(parts) > 4:
            raise ConfigurationError(f"invalid FQBN: {fqbn!r}", field="fqbn")
        package, architecture, board_id = parts[:3]
        if not package or not architecture or not board_id:
            raise ConfigurationError(f"invalid FQBN: {fqbn!r}", field="fqbn")

        configs: Dict[str, str] = {}
        if len(parts) == 4:
            for pair in parts[3].split(","):
                option, sep, value = pair.partition("=")
                if not sep or not option:
                    raise ConfigurationError(
                        f"invalid FQBN config {pair!r} in {fqbn!r}", field="fqbn"
                    )
                configs[option] = value
        return cls(package, architecture, board_id, configs)

    def string_without_config(self) -> str:
        return f"{self.package}:{self.architecture}:{self.board_id}"

    def __str__(self) -> str:
        base = self.string_without_config()
        if not self.configs:
            return base
        opts = ",".join(f"{k}={v}" for k, v in self.configs.items())
        return f"{base}:{opts}"
