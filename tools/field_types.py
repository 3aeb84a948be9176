#!/usr/bin/env python3
"""
field_types.py - Supported scalar field types and their schema names

The set of types is closed. A schema line naming anything outside the
registry table is rejected as a whole.

Usage:
    from field_types import FieldType, FieldTypeRegistry

    registry = FieldTypeRegistry()
    registry.type_of('ts')      # FieldType.TIMESTAMP
"""

from enum import IntEnum
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from decode_errors import UnknownFieldType


class FieldType(IntEnum):
    """Scalar field type tags."""
    INTEGER = 0
    BOOLEAN = 1
    DOUBLE = 2
    STRING = 3
    TIMESTAMP = 4


# Schema spelling of each type
DEFAULT_TYPE_NAMES: Dict[str, FieldType] = {
    'int': FieldType.INTEGER,
    'bool': FieldType.BOOLEAN,
    'double': FieldType.DOUBLE,
    'string': FieldType.STRING,
    'ts': FieldType.TIMESTAMP,
}


class FieldTypeRegistry:
    """
    Immutable name -> FieldType table.

    Built once by whoever loads the schemas and handed to the catalog
    builder; there is no module-level instance.
    """

    __slots__ = ('_by_name', '_by_type')

    def __init__(self, mapping: Optional[Mapping[str, FieldType]] = None):
        table = dict(DEFAULT_TYPE_NAMES if mapping is None else mapping)
        for name, ftype in table.items():
            if not isinstance(ftype, FieldType):
                raise TypeError(f"type name '{name}' maps to {ftype!r}, not a FieldType")
        by_type: Dict[FieldType, str] = {}
        for name, ftype in table.items():
            # First spelling is the canonical one for export
            by_type.setdefault(ftype, name)
        object.__setattr__(self, '_by_name', MappingProxyType(table))
        object.__setattr__(self, '_by_type', MappingProxyType(by_type))

    def __setattr__(self, key, value):
        raise AttributeError("FieldTypeRegistry is immutable")

    def type_of(self, name: str) -> FieldType:
        """Resolve a schema type name, raising UnknownFieldType if absent."""
        key = name.strip()
        try:
            return self._by_name[key]
        except KeyError:
            raise UnknownFieldType(key) from None

    def name_of(self, field_type: FieldType) -> str:
        try:
            return self._by_type[field_type]
        except KeyError:
            raise UnknownFieldType(str(field_type), "no schema name registered") from None

    def names(self) -> List[str]:
        return list(self._by_name)

    @property
    def table(self) -> Mapping[str, FieldType]:
        return self._by_name

    def __contains__(self, name) -> bool:
        return isinstance(name, str) and name.strip() in self._by_name

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    def __repr__(self) -> str:
        return f"FieldTypeRegistry({dict(self._by_name)!r})"
