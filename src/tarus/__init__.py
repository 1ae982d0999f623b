"""Tarus - cross-language command and event index for Tauri projects."""

__version__ = "0.1.0"
