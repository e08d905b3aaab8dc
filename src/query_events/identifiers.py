"""Event identifiers: plain names and structural descriptors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Union

from .exceptions import InvalidIdentifierError


@dataclass(frozen=True, slots=True)
class Name:
    """A string event identifier, matched only by exact equality."""

    value: str

    @property
    def raw(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True, eq=False)
class Descriptor:
    """An attribute bag describing an emitted event or a listener pattern.

    The caller's mapping is kept by reference so that an emission can be
    recognised as the very same object a listener registered with.
    """

    attributes: Mapping[str, Any]

    @property
    def raw(self) -> Mapping[str, Any]:
        return self.attributes

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def keys(self) -> Iterator[str]:
        return iter(self.attributes)


Identifier = Union[Name, Descriptor]


def to_identifier(value: Any) -> Identifier:
    """Resolve ``value`` into a :class:`Name` or :class:`Descriptor`."""

    if isinstance(value, (Name, Descriptor)):
        return value
    if isinstance(value, str):
        return Name(value)
    if isinstance(value, Mapping):
        return Descriptor(value)
    raise InvalidIdentifierError(
        f"Identifiers must be a str or a mapping, got {type(value).__name__}"
    )


def to_identifiers(value: Any) -> List[Identifier]:
    """Expand a single query or a list/tuple of queries."""

    if isinstance(value, (list, tuple)):
        return [to_identifier(item) for item in value]
    return [to_identifier(value)]


__all__ = [
    "Descriptor",
    "Identifier",
    "Name",
    "to_identifier",
    "to_identifiers",
]
