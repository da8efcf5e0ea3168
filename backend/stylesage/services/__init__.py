"""Services Layer — async orchestration of core rules, persistence and external clients.

Invariants:
    - One service class per aggregate (inventory, catalog, carts, users, orders, seo)
    - Services raise StorefrontError subclasses, never HTTPException
    - The service that owns an operation owns its commit

Design Decisions:
    - Services take the AsyncSession (and any external client) in __init__:
      routes build them per request, tests build them directly
"""
