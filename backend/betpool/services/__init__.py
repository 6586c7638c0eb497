"""Services Layer — the bet state machine, recovery, and the active-bet handle.

Invariants:
    - Services orchestrate store/ledger IO around pure core functions
    - No HTTP concerns (status codes, request objects) leak in here
"""
