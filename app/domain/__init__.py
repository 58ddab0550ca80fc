"""
Domain layer containing core business logic and domain services.

Submodules:
- session: Session lifecycle, admission control, chat and authorization.
- idea: Idea back-reference linkage used when sessions are created or deleted.
- utils: Domain-specific utilities (ID generation, clock).
"""
