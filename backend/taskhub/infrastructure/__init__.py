"""Infrastructure Layer — storage backends, external clients and logging setup.

Invariants:
    - Both DataService implementations return the same plain-dict shapes
    - External calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients (Anthropic SDK, httpx)
"""
