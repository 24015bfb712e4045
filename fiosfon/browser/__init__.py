"""Playwright browser session used by the page extractor."""
