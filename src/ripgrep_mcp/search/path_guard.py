"""Path Guard: confine caller-supplied paths to the search root."""

import logging
from dataclasses import dataclass
from pathlib import Path

from ripgrep_mcp.errors import ConfigError, PathTraversal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchRoot:
    """Canonical absolute directory that every search is confined to."""

    path: Path

    @classmethod
    def from_path(cls, raw: str | Path) -> "SearchRoot":
        """Resolve and validate the configured root directory."""
        try:
            resolved = Path(raw).expanduser().resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise ConfigError(f"Root directory does not exist: {raw}") from e
        if not resolved.is_dir():
            raise ConfigError(f"Root is not a directory: {raw}")
        return cls(resolved)


@dataclass(frozen=True)
class ConfinedPath:
    """A resolved path proven to be the root or one of its descendants.

    Only ``confine`` creates these.
    """

    root: SearchRoot
    path: Path

    @property
    def relative(self) -> Path:
        """Path relative to the root; ``.`` for the root itself."""
        return self.path.relative_to(self.root.path)


def confine(root: SearchRoot, candidate: str | None) -> ConfinedPath:
    """Resolve ``candidate`` under ``root`` and prove it cannot escape.

    Symlinks and ``..`` segments are resolved before the containment check,
    and the check compares path components, so ``/srv/data-2`` is never
    treated as inside ``/srv/data``. A path that cannot be resolved is
    rejected rather than searched unresolved.
    """
    if not candidate:
        return ConfinedPath(root, root.path)

    if "\x00" in candidate:
        logger.info("Rejected search path containing a NUL byte")
        raise PathTraversal("Path contains a NUL byte")

    try:
        resolved = (root.path / candidate).resolve(strict=True)
    except (OSError, RuntimeError, ValueError):
        logger.info("Rejected unresolvable search path %r", candidate)
        raise PathTraversal(f"Path cannot be resolved inside the search root: {candidate}")

    if not resolved.is_relative_to(root.path):
        logger.info("Rejected search path %r outside the search root", candidate)
        logger.debug("Path %r resolved to %s", candidate, resolved)
        raise PathTraversal(f"Path escapes the search root: {candidate}")

    return ConfinedPath(root, resolved)
