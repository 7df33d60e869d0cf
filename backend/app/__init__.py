"""Linkup API — connection lifecycle and notification fan-out service."""
