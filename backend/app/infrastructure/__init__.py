"""Infrastructure Layer — database pool, structured logging, outbound email transport.

Invariants:
    - Every external failure is mapped into the core/errors.py hierarchy here
"""
