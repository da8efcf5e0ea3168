"""API Schemas — Pydantic request/response models at the HTTP boundary.

Invariants:
    - JSON payloads use camelCase aliases; Python attributes stay snake_case
    - Schemas validate shape only; business rules live in services/
"""
