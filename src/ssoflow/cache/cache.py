"""Expiry-aware disk memoization for SSO artifacts.

:class:`ExpiryCache` stores one JSON file per artifact at
``<cache_dir>/<prefix>-<fingerprint>.json``.  A file is honoured while the
artifact's ``expires_at`` lies more than :data:`CACHE_BUFFER` in the future;
otherwise the compute callable runs and its result overwrites the file.

The cache knows nothing about what it stores beyond the
:class:`~ssoflow.models.Expiring` protocol and a Pydantic model class to
parse it back.  Stale entries are superseded, never deleted.

Failure policy:

* A missing file is an ordinary miss.
* A file that cannot be parsed is a hard :class:`~ssoflow.exceptions.CacheError`.
  Silently recomputing could mask tampering or disk corruption.
* Any other read error (permissions, I/O) is also a ``CacheError``.
* A write error after a successful compute is a ``CacheError`` and the
  computed value is discarded, so the caller learns why every run
  re-prompts.

See Also:
    :func:`ssoflow.config.atomic_write` -- the write primitive used here.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from ssoflow.config import atomic_write
from ssoflow.exceptions import CacheError
from ssoflow.models import utc_now

logger = logging.getLogger(__name__)

CACHE_BUFFER = timedelta(seconds=60)
"""Skew margin: an artifact expiring within this window counts as expired."""

T = TypeVar("T", bound=BaseModel)


class ExpiryCache:
    """Get-or-compute cache backed by one JSON file per artifact.

    Args:
        cache_dir: Directory holding cache files.  ``None`` disables caching
            entirely and every call computes.
        now: Clock returning an aware UTC ``datetime``.  Injectable for tests.

    Example::

        cache = ExpiryCache(Path("~/.cache/ssoflow").expanduser())
        token = await cache.get_or_init(
            "token", config.fingerprint(), BearerToken, fetch_token
        )
    """

    def __init__(
        self,
        cache_dir: Optional[str | Path],
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._dir = Path(cache_dir) if cache_dir is not None else None
        self._now = now

    @property
    def directory(self) -> Optional[Path]:
        """The cache directory, or ``None`` when caching is disabled."""
        return self._dir

    @property
    def enabled(self) -> bool:
        return self._dir is not None

    def path_for(self, prefix: str, fingerprint: str) -> Optional[Path]:
        """Return the file path for an entry, or ``None`` when disabled."""
        if self._dir is None:
            return None
        return self._dir / f"{prefix}-{fingerprint}.json"

    def is_fresh(self, expires_at: datetime) -> bool:
        """Return ``True`` if *expires_at* is strictly beyond ``now + CACHE_BUFFER``."""
        return expires_at - CACHE_BUFFER > self._now()

    async def get_or_init(
        self,
        prefix: str,
        fingerprint: str,
        model: type[T],
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        """Return a fresh cached value or compute, store, and return a new one.

        Args:
            prefix: Artifact kind (``client``, ``token``, ``credentials``).
            fingerprint: Hex digest of the logical inputs, see
                :meth:`~ssoflow.models.SsoConfig.fingerprint`.
            model: Pydantic model used to parse the cached JSON.  Must
                expose ``expires_at``.
            compute: Zero-argument coroutine function producing a new value.

        Returns:
            The cached or freshly computed value.

        Raises:
            CacheError: If the cache file is corrupt, unreadable, or cannot
                be written.
            Exception: Anything raised by *compute* propagates unchanged.
        """
        path = self.path_for(prefix, fingerprint)

        if path is not None:
            cached = await asyncio.to_thread(self._read, path, model)
            if cached is not None:
                if self.is_fresh(cached.expires_at):  # type: ignore[attr-defined]
                    logger.debug("Cache hit for %s", path.name)
                    return cached
                logger.debug("Cache entry %s is stale", path.name)
            else:
                logger.debug("Cache miss for %s", path.name)

        value = await compute()

        if path is not None:
            await asyncio.to_thread(self._write, path, value)
            logger.debug("Cached %s", path.name)

        return value

    def _read(self, path: Path, model: type[T]) -> Optional[T]:
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheError(f"failed to read cache file {path} due to: {exc}") from exc

        try:
            return model.model_validate_json(content.decode("utf-8"))
        except (UnicodeDecodeError, ValidationError) as exc:
            raise CacheError(f"corrupt cache file {path} due to: {exc}") from exc

    def _write(self, path: Path, value: BaseModel) -> None:
        try:
            atomic_write(path, value.model_dump_json(indent=2) + "\n")
        except OSError as exc:
            raise CacheError(f"failed to write cache file {path} due to: {exc}") from exc
