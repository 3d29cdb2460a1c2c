"""Cache directory for downloaded libraries and rendered diagrams."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import shutil
from threading import RLock


_CACHE: CacheDir | None = None
_LOCK: RLock = RLock()


def resolve_cache_root(root: str | Path | None = None) -> Path:
    """Return the cache root.

    An explicit ``root`` wins, then ``MDFLUX_CACHE_DIR``, then
    ``$XDG_CACHE_HOME/mdflux``, then ``~/.cache/mdflux``.
    """
    if root is not None:
        return Path(root).expanduser()
    env_cache = os.environ.get("MDFLUX_CACHE_DIR")
    if env_cache:
        return Path(env_cache).expanduser()
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache).expanduser() / "mdflux"
    return Path.home() / ".cache" / "mdflux"


@dataclass(slots=True)
class CacheDir:
    """Resolved cache root plus helpers to manage it."""

    root: Path

    def path(self, *parts: str | Path, create: bool = True) -> Path:
        """Return a path under the cache root, creating parent directories if needed."""
        target = self.root.joinpath(*parts)
        if create:
            target.parent.mkdir(parents=True, exist_ok=True)
        return target

    def clear(self, namespaces: list[str] | None = None) -> list[Path]:
        """Remove cached namespaces (the whole root by default) and return what was removed."""
        if namespaces is None:
            targets = [self.root]
        else:
            targets = [self.root / name for name in namespaces]

        cleared: list[Path] = []
        for path in targets:
            if not path.exists():
                continue
            shutil.rmtree(path)
            cleared.append(path)
        return cleared


def configure_cache(root: str | Path | None = None) -> CacheDir:
    """Replace the process-wide cache directory with a freshly resolved one."""
    global _CACHE
    with _LOCK:
        _CACHE = CacheDir(root=resolve_cache_root(root))
        return _CACHE


def get_cache_dir() -> CacheDir:
    """Return the process-wide cache directory, resolving it on first use."""
    with _LOCK:
        if _CACHE is None:
            return configure_cache()
        return _CACHE


__all__ = ["CacheDir", "configure_cache", "get_cache_dir", "resolve_cache_root"]
