"""Marketplace seller profile scraper: page parser, bulk crawler and lookup API."""

__version__ = "0.1.0"
