"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#F2A541"
# Lookup selects load at most this many rows of each related resource.
LOOKUP_LIMIT = 100
