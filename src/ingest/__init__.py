"""Remote form ingestion.

This module fetches raw entry pages from the form API through a
compressed, expiring cache so the daily API quota is respected.
"""
