"""
Registry Crawler Test Suite

Structure:
- unit/: Fast, isolated unit tests (no browser, no network)
- fixtures/: Saved company detail pages
"""
