"""Directory layout, cache-location precedence, and atomic writes.

This module handles the local filesystem concerns of ssoflow:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.ssoflow/`` on macOS and Windows.  See :func:`get_cache_dir` and
  :func:`get_data_dir`.
* **Cache location** -- :func:`resolve_cache_dir` merges an explicit value,
  the ``SSOFLOW_CACHE_DIR`` environment variable, and the default location.
* **Atomic writes** -- :func:`atomic_write` writes through a temp file and
  ``os.replace`` so a crash never leaves a half-written cache entry.

SSO profile discovery (``AWS_CONFIG_FILE`` / ``AWS_PROFILE``) lives in
:mod:`ssoflow.profile`.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from ssoflow import CLIENT_NAME

_APP_NAME = "ssoflow"

CACHE_DIR_ENV = "SSOFLOW_CACHE_DIR"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_cache_dir() -> Path:
    """Return the application cache directory.

    On Linux/BSD: ``$XDG_CACHE_HOME/ssoflow/`` (default ``~/.cache/ssoflow/``).
    On macOS/Windows: ``~/.ssoflow/cache/``.

    The directory is not created here; :class:`~ssoflow.cache.ExpiryCache`
    creates it on first write.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    return _fallback_base_dir() / "cache"


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/ssoflow/`` (default ``~/.local/share/ssoflow/``).
    On macOS/Windows: ``~/.ssoflow/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_cache_dir() -> Path:
    """Return the default token cache directory.

    The directory is versioned by :data:`~ssoflow.CLIENT_NAME` because the
    cache format is tied to the minor release.
    """
    return get_cache_dir() / CLIENT_NAME


# --- Precedence resolution ---


def resolve_cache_dir(explicit: Optional[str | Path] = None) -> Path:
    """Resolve the token cache directory.

    Precedence (high to low):
        1. ``explicit`` (``--cache-dir`` flag or builder argument)
        2. ``SSOFLOW_CACHE_DIR`` environment variable
        3. :func:`default_cache_dir`

    Returns:
        The cache directory path (not necessarily existing yet).
    """
    if explicit:
        return Path(explicit).expanduser()
    env_value = os.environ.get(CACHE_DIR_ENV, "")
    if env_value:
        return Path(env_value).expanduser()
    return default_cache_dir()


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  Permissions are
    set before any content is written, so secrets are never world-readable,
    even momentarily.  On any failure the temp file is cleaned up and the
    error re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
