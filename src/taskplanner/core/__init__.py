"""Core infrastructure: configuration, logging, security and caching."""
