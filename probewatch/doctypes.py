"""Document and value type enumerations used by the extractors."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

import yaml

_E = TypeVar("_E", bound=Enum)


def _label(member: Enum) -> str:
    return member.name.lower()


def _from_name(cls: type[_E], name: str) -> _E:
    wanted = name.lower()
    for member in cls:
        if _label(member) == wanted:
            return member
    return cls(0)


def _to_yaml(member: Enum) -> str:
    return f"{_label(member)}\n"


def _from_yaml(cls: type[_E], text: str) -> _E:
    try:
        value = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise ValueError(f"invalid {cls.__name__} YAML: {err}") from err
    if not isinstance(value, str):
        raise ValueError(f"invalid {cls.__name__}: {value!r}")
    for member in cls:
        if _label(member) == value:
            return member
    raise ValueError(f"invalid {cls.__name__}: {value!r}")


class DocType(Enum):
    """The kind of document a value is extracted from."""

    UNSUPPORTED = 0
    HTML = 1
    XML = 2
    JSON = 3
    TEXT = 4

    def __str__(self) -> str:
        return _label(self)

    @classmethod
    def from_name(cls, name):
        """Look a member up by name, case-insensitively; unknown names give UNSUPPORTED."""
        return _from_name(cls, name)

    def to_yaml(self) -> str:
        """Return the YAML document for this member."""
        return _to_yaml(self)

    @classmethod
    def from_yaml(cls, text):
        """Read a member from a YAML document holding its name."""
        return _from_yaml(cls, text)


class VarType(Enum):
    """The type an extracted value is converted to."""

    UNKNOWN = 0
    INT = 1
    FLOAT = 2
    STRING = 3
    BOOL = 4
    TIME = 5
    DURATION = 6

    def __str__(self) -> str:
        return _label(self)

    @classmethod
    def from_name(cls, name):
        """Look a member up by name, case-insensitively; unknown names give UNKNOWN."""
        return _from_name(cls, name)

    def to_yaml(self) -> str:
        """Return the YAML document for this member."""
        return _to_yaml(self)

    @classmethod
    def from_yaml(cls, text):
        """Read a member from a YAML document holding its name."""
        return _from_yaml(cls, text)