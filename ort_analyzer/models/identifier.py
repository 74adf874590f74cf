"""Package identifier: the key every package and reference is looked up by."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, order=True)
class Identifier:
    """Names one package within one package manager's ID space.

    Equality and ordering are lexicographic over (type, namespace, name, version).
    """

    type: str = ""
    namespace: str = ""
    name: str = ""
    version: str = ""

    EMPTY: ClassVar[Identifier]

    @classmethod
    def from_coordinates(cls, coordinates: str) -> Identifier:
        """Parse ``"type:namespace:name:version"``; missing parts become empty strings.

        The version is everything after the third colon, so versions may contain colons.
        """
        parts = coordinates.split(":", 3)
        parts += [""] * (4 - len(parts))
        return cls(*parts)

    def to_coordinates(self) -> str:
        return f"{self.type}:{self.namespace}:{self.name}:{self.version}"

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "namespace": self.namespace,
            "name": self.name,
            "version": self.version,
        }

    def __str__(self) -> str:
        return self.to_coordinates()


Identifier.EMPTY = Identifier()
