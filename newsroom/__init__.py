"""Newsroom - tag learning pipeline for the newsroom dashboard"""

from __future__ import annotations

__version__ = "1.0.0"
