"""Board community backend: accounts, JWT auth with refresh rotation, visitor dashboard."""
