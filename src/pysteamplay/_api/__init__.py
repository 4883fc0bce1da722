"""Steam endpoint wrappers."""
