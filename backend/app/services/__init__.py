"""Services Layer — connection engine, notification fan-out, email dispatch, SQL stores.

Invariants:
    - Services orchestrate IO around the pure rules in core/
    - Stores never commit; engine operations commit exactly once on success
"""
