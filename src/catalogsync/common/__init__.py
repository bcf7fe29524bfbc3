"""Shared helpers for catalogsync."""
