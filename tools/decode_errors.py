#!/usr/bin/env python3
"""
decode_errors.py - Error taxonomy for schema and message decoding

Everything below MessageDecodeError is local to one schema line, one
message line or one field: callers log it and skip that unit. Only
SourceError (an input cannot be opened) is fatal for a run.
"""


class MessageDecodeError(ValueError):
    """Base class for all decoding problems."""


# Schema definitions

class SchemaDefinitionError(MessageDecodeError):
    """A schema definition was rejected."""


class MalformedDefinition(SchemaDefinitionError):
    """Definition line has too few segments or a broken field spec."""


class UnknownFieldType(SchemaDefinitionError):
    """Field type name is not in the type registry."""

    def __init__(self, type_name: str, detail: str = ""):
        self.type_name = type_name
        msg = f"unknown field type '{type_name}'"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class DuplicateMessageId(SchemaDefinitionError):
    """A message id was already defined; the later definition is dropped."""

    def __init__(self, message_id: int):
        self.message_id = message_id
        super().__init__(f"message id {message_id} already defined")


# Message lines

class LineSkipped(MessageDecodeError):
    """A message line could not be matched to a schema and is skipped."""


class TooFewTokens(LineSkipped):
    """Message line carries fewer tokens than required."""

    def __init__(self, got: int, needed: int, detail: str = ""):
        self.got = got
        self.needed = needed
        msg = f"only {got} token(s), need at least {needed}"
        if detail:
            msg = f"{msg} {detail}"
        super().__init__(msg)


class UnknownMessageType(LineSkipped):
    """No schema is registered for the message id."""

    def __init__(self, message_id: int):
        self.message_id = message_id
        super().__init__(f"no message definition for type_id={message_id}")


# Fields

class FieldDecodeError(MessageDecodeError):
    """A single field could not be decoded."""


class UnsupportedType(FieldDecodeError):
    """Decode was requested for a type tag outside the supported set."""

    def __init__(self, field_type):
        self.field_type = field_type
        super().__init__(f"field type {field_type!r} not supported")


# Sources

class SourceError(MessageDecodeError):
    """An input source could not be opened or read."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot open {self.path}: {reason}")


class SchemaSourceError(SourceError):
    """Schema definition source is unusable."""


class MessageSourceError(SourceError):
    """Message source is unusable."""
