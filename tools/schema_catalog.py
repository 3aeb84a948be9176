#!/usr/bin/env python3
"""
schema_catalog.py - Message pattern definitions and the id -> pattern catalog

Schema definition lines look like:

    # id;name;field:type;field:type;...
    1;Login;user:string;ok:bool
    2;Reading;sensor:int;value:double;at:ts

Adding a field to a definition changes how that message type decodes
without any code change: decoding is driven entirely by the pattern's
field list.

The same definitions can be given as YAML:

    messages:
      - id: 1
        name: Login
        fields:
          - {name: user, type: string}
          - {name: ok, type: bool}

Usage:
    from schema_catalog import SchemaCatalog

    catalog = SchemaCatalog.from_file('messages.schema')
    pattern = catalog.lookup(1)
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import yaml

from decode_errors import (
    DuplicateMessageId, MalformedDefinition, SchemaDefinitionError,
    SchemaSourceError, UnknownFieldType, UnknownMessageType,
)
from decode_log import log_info, log_warn
from field_decoder import lenient_int
from field_types import FieldType, FieldTypeRegistry

DEFINITION_DELIMITER = ';'
FIELD_TYPE_SEPARATOR = ':'
COMMENT_PREFIX = '#'
YAML_SUFFIXES = ('.yaml', '.yml')


@dataclass(frozen=True)
class MessagePattern:
    """One declared message schema."""
    message_id: int
    message_name: str
    fields: Tuple[Tuple[str, FieldType], ...]

    def __post_init__(self):
        if not self.fields:
            raise MalformedDefinition(f"message {self.message_id} declares no fields")
        seen = set()
        for name, _ in self.fields:
            if name in seen:
                raise MalformedDefinition(f"message {self.message_id} repeats field '{name}'")
            seen.add(name)

    @property
    def field_names(self) -> List[str]:
        return [name for name, _ in self.fields]

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def to_dict(self, registry: Optional[FieldTypeRegistry] = None) -> Dict[str, Any]:
        registry = registry or FieldTypeRegistry()
        return {
            'id': self.message_id,
            'name': self.message_name,
            'fields': [
                {'name': name, 'type': registry.name_of(ftype)}
                for name, ftype in self.fields
            ],
        }


def is_comment(line: str) -> bool:
    return line.startswith(COMMENT_PREFIX)


def parse_definition_line(line: str,
                          registry: Optional[FieldTypeRegistry] = None) -> MessagePattern:
    """
    Parse one ';'-delimited definition line into a MessagePattern.

    Raises:
        MalformedDefinition: fewer than 3 segments, or a field spec that is
            not 'name:type'
        UnknownFieldType: a field type is not in the registry; the whole
            line is rejected
    """
    registry = registry or FieldTypeRegistry()
    segments = line.rstrip('\r\n').split(DEFINITION_DELIMITER)

    # A trailing ';' leaves empty segments behind
    while segments and not segments[-1].strip():
        segments.pop()

    if len(segments) < 3:
        raise MalformedDefinition(
            f"expected at least 3 '{DEFINITION_DELIMITER}'-separated segments, "
            f"got {len(segments)}"
        )

    message_id = lenient_int(segments[0])
    message_name = segments[1].strip()

    fields = []
    for spec in segments[2:]:
        if FIELD_TYPE_SEPARATOR not in spec:
            raise MalformedDefinition(f"field spec '{spec}' is not name{FIELD_TYPE_SEPARATOR}type")
        name, _, type_name = spec.partition(FIELD_TYPE_SEPARATOR)
        name = name.strip()
        if not name:
            raise MalformedDefinition(f"field spec '{spec}' has an empty name")
        try:
            ftype = registry.type_of(type_name)
        except UnknownFieldType as e:
            raise UnknownFieldType(e.type_name, f"field '{name}'") from None
        fields.append((name, ftype))

    return MessagePattern(message_id, message_name, tuple(fields))


def _pattern_from_entry(entry: Any, registry: FieldTypeRegistry) -> MessagePattern:
    """Build a pattern from one YAML 'messages' entry."""
    if not isinstance(entry, dict):
        raise MalformedDefinition("message entry must be a mapping")
    if 'id' not in entry:
        raise MalformedDefinition("message entry missing 'id'")

    raw_fields = entry.get('fields')
    if not isinstance(raw_fields, list) or not raw_fields:
        raise MalformedDefinition(f"message {entry['id']}: 'fields' must be a non-empty list")

    fields = []
    for i, field_def in enumerate(raw_fields):
        if not isinstance(field_def, dict) or 'name' not in field_def or 'type' not in field_def:
            raise MalformedDefinition(f"message {entry['id']}: fields[{i}] needs 'name' and 'type'")
        name = str(field_def['name']).strip()
        if not name:
            raise MalformedDefinition(f"message {entry['id']}: fields[{i}] has an empty name")
        try:
            ftype = registry.type_of(str(field_def['type']))
        except UnknownFieldType as e:
            raise UnknownFieldType(e.type_name, f"field '{name}'") from None
        fields.append((name, ftype))

    return MessagePattern(lenient_int(str(entry['id'])), str(entry.get('name', '')), tuple(fields))


class SchemaCatalog:
    """
    Read-only mapping of message id to MessagePattern.

    Instances come from build()/from_yaml()/from_file() and are never
    mutated afterwards, so lookups from several threads need no locking.
    """

    def __init__(self, patterns: Mapping[int, MessagePattern],
                 registry: Optional[FieldTypeRegistry] = None,
                 rejected: Iterable[Tuple[int, SchemaDefinitionError]] = (),
                 source: Optional[str] = None):
        self._patterns = MappingProxyType(dict(sorted(patterns.items())))
        self.registry = registry or FieldTypeRegistry()
        self.rejected = tuple(rejected)
        self.source = source

    @classmethod
    def build(cls, lines: Iterable[str],
              registry: Optional[FieldTypeRegistry] = None,
              source: Optional[str] = None) -> 'SchemaCatalog':
        """
        Build a catalog from definition lines.

        Comment and blank lines are skipped. A line that fails to parse is
        logged and skipped; the rest of the build continues. The first
        definition of an id wins and later ones are discarded.
        """
        registry = registry or FieldTypeRegistry()
        label = source or '<schema>'
        log_info(f"start parsing message definitions from {label}")

        patterns: Dict[int, MessagePattern] = {}
        rejected: List[Tuple[int, SchemaDefinitionError]] = []

        for line_no, line in enumerate(lines, 1):
            if is_comment(line) or not line.strip():
                continue
            try:
                pattern = parse_definition_line(line, registry)
            except SchemaDefinitionError as e:
                log_warn(f"{label}:{line_no}: definition rejected: {e}; "
                         f"origin_definition={line.rstrip()}")
                rejected.append((line_no, e))
                continue
            cls._insert(patterns, pattern, line_no, label, rejected)
            log_info(f"parsed definition id={pattern.message_id} name={pattern.message_name} "
                     f"fields_num={pattern.field_count}")

        log_info(f"total patterns parsed num={len(patterns)}")
        return cls(patterns, registry, rejected, source)

    @classmethod
    def from_yaml(cls, document: Union[str, Path, Mapping[str, Any]],
                  registry: Optional[FieldTypeRegistry] = None) -> 'SchemaCatalog':
        """Build a catalog from a YAML document (path or already loaded mapping)."""
        registry = registry or FieldTypeRegistry()
        source = None
        if not isinstance(document, Mapping):
            source = str(document)
            try:
                with open(document, encoding='utf-8') as f:
                    document = yaml.safe_load(f)
            except OSError as e:
                raise SchemaSourceError(source, e.strerror or str(e)) from e
            except yaml.YAMLError as e:
                raise SchemaSourceError(source, f"invalid YAML: {e}") from e

        if not isinstance(document, Mapping) or not isinstance(document.get('messages'), list):
            raise SchemaSourceError(source or '<yaml>', "document must contain a 'messages' list")

        label = source or '<yaml>'
        patterns: Dict[int, MessagePattern] = {}
        rejected: List[Tuple[int, SchemaDefinitionError]] = []

        for index, entry in enumerate(document['messages']):
            try:
                pattern = _pattern_from_entry(entry, registry)
            except SchemaDefinitionError as e:
                log_warn(f"{label}: messages[{index}] rejected: {e}")
                rejected.append((index, e))
                continue
            cls._insert(patterns, pattern, index, label, rejected)

        log_info(f"total patterns parsed num={len(patterns)}")
        return cls(patterns, registry, rejected, source)

    @classmethod
    def from_file(cls, path: Union[str, Path],
                  registry: Optional[FieldTypeRegistry] = None) -> 'SchemaCatalog':
        """Load a catalog from a definition file; YAML is picked by suffix."""
        path = Path(path)
        if path.suffix.lower() in YAML_SUFFIXES:
            return cls.from_yaml(path, registry)
        try:
            with open(path, encoding='utf-8', errors='replace') as f:
                return cls.build(f, registry, source=str(path))
        except OSError as e:
            raise SchemaSourceError(path, e.strerror or str(e)) from e

    @staticmethod
    def _insert(patterns: Dict[int, MessagePattern], pattern: MessagePattern,
                position: int, label: str,
                rejected: List[Tuple[int, SchemaDefinitionError]]) -> None:
        if pattern.message_id in patterns:
            error = DuplicateMessageId(pattern.message_id)
            log_warn(f"{label}:{position}: {error}, ignoring it")
            rejected.append((position, error))
            return
        patterns[pattern.message_id] = pattern

    def lookup(self, message_id: int) -> MessagePattern:
        try:
            return self._patterns[message_id]
        except KeyError:
            raise UnknownMessageType(message_id) from None

    def get(self, message_id: int,
            default: Optional[MessagePattern] = None) -> Optional[MessagePattern]:
        return self._patterns.get(message_id, default)

    def ids(self) -> List[int]:
        return list(self._patterns)

    @property
    def patterns(self) -> Mapping[int, MessagePattern]:
        return self._patterns

    def to_dict(self) -> Dict[str, Any]:
        return {'messages': [p.to_dict(self.registry) for p in self]}

    def dump_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False)

    def __contains__(self, message_id) -> bool:
        return message_id in self._patterns

    def __iter__(self) -> Iterator[MessagePattern]:
        return iter(self._patterns.values())

    def __len__(self) -> int:
        return len(self._patterns)

    def __repr__(self) -> str:
        return f"SchemaCatalog(ids={self.ids()!r}, source={self.source!r})"
