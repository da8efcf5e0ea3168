"""Core Layer — pure storefront logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic (clock and randomness injected)

Design Decisions:
    - Functional core separated from imperative shell: pricing, stock maps,
      cart merging and order transitions are testable without a database
"""
