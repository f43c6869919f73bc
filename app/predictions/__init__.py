"""User predictions."""
