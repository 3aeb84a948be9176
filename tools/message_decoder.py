#!/usr/bin/env python3
"""
message_decoder.py - Decode ','-delimited message lines against a SchemaCatalog

Each message line starts with its type id, followed by one token per
field declared for that id:

    1,alice,1            ->  user=alice, ok=true    (1;Login;user:string;ok:bool)

Errors stay as small as possible: a bad field is skipped and the rest of
the line still decodes; a line that cannot be matched is skipped and the
rest of the input still decodes.

Usage:
    from schema_catalog import SchemaCatalog
    from message_decoder import MessageDecoder

    catalog = SchemaCatalog.from_file('messages.schema')
    decoder = MessageDecoder(catalog)
    for message in decoder.decode_file('messages.txt'):
        print(message.render())
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from decode_errors import (
    FieldDecodeError, LineSkipped, MessageSourceError, TooFewTokens,
)
from decode_log import log_info, log_warn
from field_decoder import DecodedField, DecodedValue, FieldDecoder, lenient_int
from schema_catalog import SchemaCatalog, is_comment

MESSAGE_DELIMITER = ','
OUTPUT_SEPARATOR = ','


@dataclass
class DecodedMessage:
    """Result of decoding one message line."""
    message_id: int
    message_name: str
    fields: List[DecodedField] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    line_number: Optional[int] = None

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    def values(self) -> List[Tuple[str, DecodedValue]]:
        return [(f.name, f.value) for f in self.fields]

    def render(self) -> str:
        return OUTPUT_SEPARATOR.join(f.render() for f in self.fields)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.message_id,
            'name': self.message_name,
            'fields': {f.name: _json_value(f.value) for f in self.fields},
        }
        if self.line_number is not None:
            result['line'] = self.line_number
        if self.warnings:
            result['warnings'] = list(self.warnings)
        if self.errors:
            result['errors'] = list(self.errors)
        return result


@dataclass
class DecodeStats:
    """Counters for one batch."""
    lines_read: int = 0
    ignored: int = 0
    decoded: int = 0
    field_errors: int = 0
    skipped: Counter = field(default_factory=Counter)

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lines_read': self.lines_read,
            'ignored': self.ignored,
            'decoded': self.decoded,
            'skipped': self.skipped_total,
            'skipped_by_reason': dict(self.skipped),
            'field_errors': self.field_errors,
        }


class MessageDecoder:
    """
    Decodes message lines using a shared, read-only SchemaCatalog.

    The catalog is held by reference; several decoders may share one.
    """

    def __init__(self, catalog: SchemaCatalog, field_decoder: Optional[FieldDecoder] = None):
        self.catalog = catalog
        self.field_decoder = field_decoder or FieldDecoder()
        self.stats = DecodeStats()

    def decode_line(self, line: str, line_number: Optional[int] = None) -> DecodedMessage:
        """
        Decode a single message line.

        Raises:
            TooFewTokens: fewer than 2 tokens, or fewer payload tokens than
                the matched pattern declares fields
            UnknownMessageType: the leading id has no pattern in the catalog
        """
        tokens = line.rstrip('\r\n').split(MESSAGE_DELIMITER)
        if len(tokens) < 2:
            raise TooFewTokens(len(tokens), 2)

        message_id = lenient_int(tokens[0])
        pattern = self.catalog.lookup(message_id)

        payload = tokens[1:]
        if len(payload) < pattern.field_count:
            raise TooFewTokens(
                len(payload), pattern.field_count,
                f"payload token(s) for {pattern.message_name or message_id}",
            )

        message = DecodedMessage(message_id, pattern.message_name, line_number=line_number)
        if len(payload) > pattern.field_count:
            message.warnings.append(
                f"{len(payload) - pattern.field_count} extra token(s) ignored"
            )

        for (name, ftype), token in zip(pattern.fields, payload):
            try:
                message.fields.append(self.field_decoder.decode_named(name, token, ftype))
            except FieldDecodeError as e:
                message.errors.append(f"Error decoding {name}: {e}")
                log_warn(f"{_where(line_number)}field {name} skipped: {e}")
        return message

    def decode_lines(self, lines: Iterable[str]) -> Iterator[DecodedMessage]:
        """Decode every non-comment line, logging and skipping unmatched ones."""
        for line_no, line in enumerate(lines, 1):
            self.stats.lines_read += 1
            if is_comment(line) or not line.strip():
                self.stats.ignored += 1
                continue
            try:
                message = self.decode_line(line, line_no)
            except LineSkipped as e:
                self.stats.skipped[type(e).__name__] += 1
                log_warn(f"{_where(line_no)}{e}, ignoring line={line.rstrip()}")
                continue
            self.stats.decoded += 1
            self.stats.field_errors += len(message.errors)
            for warning in message.warnings:
                log_info(f"{_where(line_no)}{warning}")
            yield message

    def decode_file(self, path: Union[str, Path]) -> List[DecodedMessage]:
        """Decode a whole message file."""
        log_info(f"decoding messages from {path}")
        try:
            # Undecodable bytes become U+FFFD so only the affected line is touched
            with open(path, encoding='utf-8', errors='replace') as f:
                messages = list(self.decode_lines(f))
        except OSError as e:
            raise MessageSourceError(path, e.strerror or str(e)) from e
        log_info(f"decoded {self.stats.decoded} message(s), skipped {self.stats.skipped_total}")
        return messages


def _json_value(value: DecodedValue) -> Any:
    """JSON has no inf/nan; those doubles are emitted as their text form."""
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    return value


def _where(line_number: Optional[int]) -> str:
    return f"line {line_number}: " if line_number is not None else ""


def decode_line(line: str, catalog: SchemaCatalog) -> DecodedMessage:
    """Convenience function to decode one line."""
    return MessageDecoder(catalog).decode_line(line)
