"""Readable names for game database ids.

Generated scripts refer to switches, variables, actors and the other database
entries by identifier.  Without a name table every reference falls back to a
mechanical name such as ``game_switch_12``; a table loaded from JSON or TOML
replaces those with names chosen by the user::

    {
        "switches": {"1": "met_the_king"},
        "variables": {"3": "gold_donated"},
        "common-events": {"5": "open_shop"}
    }

Every configured name must be a valid Python identifier so the generated text
stays syntactically valid.
"""

from __future__ import annotations

import json
import keyword
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

from .errors import ConfigError


# Category -> fallback identifier prefix.
CATEGORIES: Mapping[str, str] = MappingProxyType(
    {
        "switches": "game_switch",
        "variables": "game_variable",
        "common_events": "common_event",
        "actors": "game_actor",
        "classes": "game_class",
        "skills": "game_skill",
        "items": "game_item",
        "weapons": "game_weapon",
        "armors": "game_armor",
        "states": "game_state",
        "troops": "game_troop",
        "maps": "game_map",
        "enemies": "game_enemy",
    }
)


@dataclass(frozen=True)
class NameTable:
    """Resolve database ids to identifiers."""

    names: Mapping[str, Mapping[int, str]] = field(default_factory=dict)

    def name(self, category: str, entry_id: int) -> str:
        prefix = CATEGORIES.get(category)
        if prefix is None:
            raise KeyError(f"unknown name category {category!r}")
        configured = self.names.get(category, {}).get(entry_id)
        if configured is not None:
            return configured
        if entry_id < 0:
            return f"{prefix}_minus_{-entry_id}"
        return f"{prefix}_{entry_id}"

    def switch(self, entry_id: int) -> str:
        return self.name("switches", entry_id)

    def variable(self, entry_id: int) -> str:
        return self.name("variables", entry_id)

    def common_event(self, entry_id: int) -> str:
        return self.name("common_events", entry_id)

    def actor(self, entry_id: int) -> str:
        return self.name("actors", entry_id)

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------
    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any], *, source: str = "<mapping>") -> "NameTable":
        if not isinstance(payload, Mapping):
            raise ConfigError(f"{source}: name table must be an object")
        names: Dict[str, Mapping[int, str]] = {}
        for raw_category, entries in payload.items():
            category = str(raw_category).replace("-", "_")
            if category not in CATEGORIES:
                raise ConfigError(f"{source}: unknown category {raw_category!r}")
            if not isinstance(entries, Mapping):
                raise ConfigError(f"{source}: category {raw_category!r} must map ids to names")
            table: Dict[int, str] = {}
            for raw_id, name in entries.items():
                try:
                    entry_id = int(raw_id)
                except (TypeError, ValueError):
                    raise ConfigError(f"{source}: {raw_category} id {raw_id!r} is not an integer") from None
                if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
                    raise ConfigError(
                        f"{source}: {raw_category} name {name!r} is not a valid Python identifier"
                    )
                table[entry_id] = name
            names[category] = MappingProxyType(table)
        return cls(MappingProxyType(names))

    @classmethod
    def load(cls, path: Path) -> "NameTable":
        """Load a name table from a ``.json`` or ``.toml`` file."""

        try:
            if path.suffix.lower() == ".toml":
                payload = tomllib.loads(path.read_text("utf-8"))
            else:
                payload = json.loads(path.read_text("utf-8"))
        except OSError as exc:
            raise ConfigError(f"failed to read name table {path}: {exc}") from exc
        except ValueError as exc:
            raise ConfigError(f"failed to parse name table {path}: {exc}") from exc
        return cls.from_mapping(payload, source=str(path))
