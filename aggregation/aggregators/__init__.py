"""Domain aggregators combining provider adapters behind the cache."""
