"""Configuration and error types for rolling token authentication."""
