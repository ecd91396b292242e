"""Core Layer — domain types, errors, validators and signature checks.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - No IO: storage is only described here (repository_protocols), never touched

Design Decisions:
    - Clock values are parameters (now_ms) so signature checks test deterministically
"""
