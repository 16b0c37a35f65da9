"""Derived-attribute cache maintenance and share-card publishing for player wrap-ups."""

__version__ = "0.1.0"
