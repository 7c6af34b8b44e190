"""
Scrapers Package
================

Headless-browser page fetching.
"""

from .page import BrowserSession, FetchError, PageFetcher

__all__ = [
    "BrowserSession",
    "FetchError",
    "PageFetcher",
]
