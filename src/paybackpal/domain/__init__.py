"""Domain-layer protocols."""
