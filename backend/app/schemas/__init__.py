"""API Schemas — Pydantic models at the HTTP boundary.

Invariants:
    - Route handlers return these models (or plain dicts), never ORM rows directly
"""
