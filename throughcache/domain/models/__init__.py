"""Domain Models: cache entries and shared value objects."""
