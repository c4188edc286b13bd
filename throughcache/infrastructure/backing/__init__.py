"""Reference BackingSource adapters (in-memory and JSON file)."""
