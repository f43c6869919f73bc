"""Payouts, deposits and the prize pool."""
