"""Offline cache controller for the wedding site service worker."""

__version__ = "2.0.0"
