"""Format-agnostic helpers shared across the worker."""
