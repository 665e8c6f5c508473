"""Persistence, plan supply and remote store access."""
