"""Document store port and its adapters."""
