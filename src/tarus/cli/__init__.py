"""Tarus CLI."""
