"""Scrape the IPIndia news listing and store unseen items."""

__version__ = "0.1.0"
