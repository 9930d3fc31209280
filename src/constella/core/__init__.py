"""Cross-cutting configuration, security and error handling."""
