"""Hunt domain services: registry, catalog, ledger, rules and sync.

These modules hold the game-state consistency rules and are imported by
HTTP routes, socket handlers and CLI commands, keeping transport
concerns separated from the game itself.
"""
