"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure depends on core/ only for error types and constants
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients: services never see httpx or SDK exceptions
"""
