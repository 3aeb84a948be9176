#!/usr/bin/env python3
"""
decode_log.py - stderr logging helpers shared by the decoding tools

Messages are written as "[LEVEL] text" lines on stderr so that decoded
output on stdout stays machine readable.
"""

import sys

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Enable or disable [INFO] output."""
    global _verbose
    _verbose = bool(enabled)


def log_info(msg: str) -> None:
    if _verbose:
        print(f"[INFO] {msg}", file=sys.stderr)


def log_warn(msg: str) -> None:
    print(f"[WARN] {msg}", file=sys.stderr)


def log_error(msg: str) -> None:
    print(f"[ERROR] {msg}", file=sys.stderr)
