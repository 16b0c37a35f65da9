"""Operator maintenance actions for the player cache."""

from .invalidator import CacheInvalidator

__all__ = ["CacheInvalidator"]
