"""JSON API package."""
