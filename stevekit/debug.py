"""Debug logging settings and their command-line flags."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass

DEFAULT_DEBUG_LEVEL = 7

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

_verbosity = 0


@dataclass
class DebugConfig:
    debug: bool = False
    debug_level: int = DEFAULT_DEBUG_LEVEL

    def setup_debug(self) -> int:
        """Apply the settings and return the resulting log verbosity."""
        global _verbosity
        level = self.debug_level if self.debug else 0
        if not _INT32_MIN <= level <= _INT32_MAX:
            raise ValueError(f"invalid verbosity {level}: out of range")
        if self.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        _verbosity = level
        return level

    def must_setup_debug(self) -> int:
        try:
            return self.setup_debug()
        except ValueError as err:
            raise RuntimeError(f"failed to setup debug logging: {err}") from err


def add_flags(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add ``--debug`` and ``--debug-level`` to the parser."""
    parser.add_argument("--debug", action="store_true", default=False)
    parser.add_argument("--debug-level", type=int, default=DEFAULT_DEBUG_LEVEL)
    return parser


def config_from_args(args: argparse.Namespace) -> DebugConfig:
    return DebugConfig(
        debug=bool(getattr(args, "debug", False)),
        debug_level=int(getattr(args, "debug_level", DEFAULT_DEBUG_LEVEL)),
    )