"""Recurring - recurring tasks kept in markdown notes."""
