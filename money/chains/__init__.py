"""Per-chain client implementations."""
