"""Access and presence ledgers with retention-driven archival."""
