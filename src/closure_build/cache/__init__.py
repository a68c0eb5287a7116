"""Fingerprinted on-disk artifact cache."""

from .store import CacheEntry, CacheStore, fingerprint

__all__ = ["CacheEntry", "CacheStore", "fingerprint"]
