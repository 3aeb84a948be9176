#!/usr/bin/env python3
"""
decode_messages.py - Decode a message file using a message definition file

Usage:
    python tools/decode_messages.py messages.schema messages.txt
    python tools/decode_messages.py messages.yaml messages.txt --json
    python tools/decode_messages.py messages.schema --dump-catalog
    python tools/decode_messages.py messages.schema messages.txt -v --stats

Output:
    One line per decoded message on stdout, field values joined with ','
    (or one JSON object per line with --json). Diagnostics go to stderr.

Exit status is 1 when either input cannot be opened or the definition
file yields no usable message pattern.
"""

import argparse
import json
import sys

from decode_errors import SourceError
from decode_log import log_error, log_info, set_verbose
from field_types import FieldTypeRegistry
from message_decoder import MessageDecoder
from schema_catalog import SchemaCatalog


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Decode delimited messages using message pattern definitions'
    )
    parser.add_argument('schema', help='Message definition file (.schema lines or .yaml)')
    parser.add_argument('messages', nargs='?', help='Message file to decode')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log parsing progress to stderr')
    parser.add_argument('--json', action='store_true',
                        help='Output decoded messages as JSON lines')
    parser.add_argument('--dump-catalog', action='store_true',
                        help='Print the parsed definitions as YAML and exit')
    parser.add_argument('--stats', action='store_true',
                        help='Print decode counters to stderr when done')
    args = parser.parse_args(argv)

    if not args.messages and not args.dump_catalog:
        parser.error('the messages argument is required unless --dump-catalog is given')

    set_verbose(args.verbose)
    registry = FieldTypeRegistry()

    try:
        catalog = SchemaCatalog.from_file(args.schema, registry)
    except SourceError as e:
        log_error(f"Error loading message definitions: {e}")
        return 1

    if len(catalog) == 0:
        log_error(f"no usable message definition in {args.schema}")
        return 1

    if args.dump_catalog:
        sys.stdout.write(catalog.dump_yaml())
        return 0

    decoder = MessageDecoder(catalog)
    try:
        messages = decoder.decode_file(args.messages)
    except SourceError as e:
        log_error(f"Error loading messages: {e}")
        return 1

    for message in messages:
        if args.json:
            print(json.dumps(message.to_dict(), allow_nan=False))
        else:
            print(message.render())

    if args.stats:
        for key, value in decoder.stats.to_dict().items():
            print(f"{key}: {value}", file=sys.stderr)
    log_info("done")
    return 0


if __name__ == '__main__':
    sys.exit(main())
