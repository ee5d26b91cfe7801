"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def parse_bool(value: str, name: str) -> bool:
    """Parse a boolean environment value."""
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of {', '.join(TRUE_VALUES + FALSE_VALUES)}, got '{value}'")


@dataclass(frozen=True)
class Settings:
    """Settings shared by the services and the CLI."""

    database_path: Optional[str] = None
    only_posted: bool = True
    include_empty_guv_sections: bool = True
    category_table: Optional[str] = None
    carryforward_prefixes: tuple[str, ...] = ("9",)
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from BILANZ_* environment variables."""
        env = os.environ if environ is None else environ
        prefixes = env.get("BILANZ_CARRYFORWARD_PREFIXES", "9")
        return cls(
            database_path=env.get("BILANZ_DB_PATH"),
            only_posted=parse_bool(env.get("BILANZ_ONLY_POSTED", "true"), "BILANZ_ONLY_POSTED"),
            include_empty_guv_sections=parse_bool(
                env.get("BILANZ_INCLUDE_EMPTY_GUV_SECTIONS", "true"),
                "BILANZ_INCLUDE_EMPTY_GUV_SECTIONS",
            ),
            category_table=env.get("BILANZ_CATEGORY_TABLE"),
            carryforward_prefixes=tuple(p.strip() for p in prefixes.split(",") if p.strip()),
            log_level=env.get("BILANZ_LOG_LEVEL", "WARNING").upper(),
        )

    @property
    def resolved_database_path(self) -> str:
        if self.database_path:
            return self.database_path
        return str(Path.home() / ".bilanz" / "bilanz.db")
