"""Version reporting."""

from __future__ import annotations

from dataclasses import dataclass

VERSION = "dev"


@dataclass(frozen=True)
class Getter:
    """Returns the version it was created with."""

    version: str = VERSION

    def get(self) -> str:
        return self.version