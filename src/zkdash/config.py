"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

DEFAULT_SECTIONS: Tuple[str, ...] = (
    "statistics",
    "sticky-pages",
    "modified-files",
    "orphaned-files",
    "most-linked-files",
    "footer",
)


def _get_default_db_path() -> Path:
    """Get the default index path, preferring a local data/ directory."""
    local_db = Path("data/zettelkasten.db")
    if local_db.exists():
        return local_db
    return Path.home() / ".zkdash" / "zettelkasten.db"


@dataclass(slots=True)
class DashboardConfig:
    db_path: Path | None = None
    sections: Tuple[str, ...] = field(default=DEFAULT_SECTIONS)
    sticky_tag: str = "Dashboard"
    buffer_name: str = "Zettelkasten Dashboard"
    modified_limit: int = 10
    linked_limit: int = 10
    title_max_len: int = 80

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        self.sections = tuple(self.sections)
        unknown = [name for name in self.sections if name not in DEFAULT_SECTIONS]
        if unknown:
            raise ValueError(f"Unknown dashboard sections: {', '.join(unknown)}")
        for name in ("modified_limit", "linked_limit", "title_max_len"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be positive")

    def secondary_buffer_name(self, title: str) -> str:
        return f"{self.buffer_name} - {title}"

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
