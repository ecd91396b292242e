"""Services Layer — business operations shared by REST routes and Discord commands.

Invariants:
    - Services talk to storage only through the DataService protocol
    - Authorization is checked here, never in routes
    - Every state change records one activity entry

Design Decisions:
    - One module per area (projects, tasks, accounts, Discord) with plain async functions
"""
