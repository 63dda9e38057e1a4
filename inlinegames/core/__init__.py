"""Per-action context and render instructions.

Kept free of FastAPI and Redis concerns so the dispatcher can be driven from API
routes, a bot process, or tests.
"""
