# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# errors.py
# -----------------------------------------------------------------------------
# Purpose:
#   Exceptions raised when the flow coordinator or a patron is driven out of
#   order. These are invariant violations, never expected runtime events.
#
# Usage:
#   from barsim.errors import InvalidStateError, MissingCharacterError
# -----------------------------------------------------------------------------

from __future__ import annotations

class InvalidStateError(RuntimeError):
    """An operation was called in a lifecycle state that does not allow it."""

class MissingCharacterError(KeyError):
    """A character key was requested that is not in the registry."""
