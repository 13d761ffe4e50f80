"""Disk-based artifact caching for ssoflow.

This package provides :class:`ExpiryCache`, the get-or-compute primitive
that memoizes client registrations, bearer tokens, and session credentials
on disk until shortly before they expire.

The cache is consumed by :class:`~ssoflow.flow.SsoFlow`; its location is
resolved by :func:`~ssoflow.config.resolve_cache_dir`.
"""

from ssoflow.cache.cache import CACHE_BUFFER, ExpiryCache

__all__ = ["CACHE_BUFFER", "ExpiryCache"]
