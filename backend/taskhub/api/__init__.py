"""API Layer — FastAPI routes, request dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON; errors share one {"error": ...} shape

Design Decisions:
    - Thin routes: resolve the principal, call one service function, shape the response
"""
