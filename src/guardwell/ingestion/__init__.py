"""Ingestion layer.

This package turns raw push events and snapshot responses into validated
records.  It never mutates engine state; the state layer owns that.
"""

__all__: list[str] = []
