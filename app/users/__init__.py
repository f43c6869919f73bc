"""User progression (XP and levels)."""
