"""Level definitions and the repository that loads them from YAML."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from power_trowel.backend.models.slab import ConfigurationError

DEFAULT_LEVELS_FILE = Path(__file__).resolve().parent.parent.parent / "data" / "levels.yaml"


def _is_int(value: object) -> bool:
    # YAML reads `true` as a bool, which is also an int.
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class LevelDefinition:
    width: int
    height: int
    time_limit: float

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ConfigurationError(
                f"Level slab must be at least 1×1, got {self.width}×{self.height}."
            )
        if self.time_limit <= 0:
            raise ConfigurationError(
                f"Level time limit must be positive, got {self.time_limit}."
            )


class LevelRepository:
    """Ordered, read-only sequence of level definitions.

    Levels are read from a YAML file shaped like::

        levels:
          - {width: 6, height: 6, time_limit: 60}
          - {width: 8, height: 8, time_limit: 70}
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or DEFAULT_LEVELS_FILE
        self._levels = self._load_levels(self.path)

    @classmethod
    def from_definitions(cls, levels: list[LevelDefinition]) -> LevelRepository:
        """Build a repository directly from definitions (no file involved)."""
        if not levels:
            raise ConfigurationError("A level sequence needs at least one level.")
        obj = object.__new__(cls)
        obj.path = None
        obj._levels = list(levels)
        return obj

    def all(self) -> list[LevelDefinition]:
        return list(self._levels)

    def get(self, index: int) -> LevelDefinition:
        """Return the level at *index*; indices past the end wrap around."""
        return self._levels[self.wrap(index)]

    def wrap(self, index: int) -> int:
        return index % len(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    # -- loading --------------------------------------------------------------

    @staticmethod
    def _load_levels(path: Path) -> list[LevelDefinition]:
        if not path.exists():
            raise FileNotFoundError(f"Levels file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{path.name}: invalid YAML ({e})") from e

        if not raw or not isinstance(raw, dict) or not isinstance(raw.get("levels"), list):
            raise ConfigurationError(f"{path.name}: expected a mapping with a 'levels' list")

        levels: list[LevelDefinition] = []
        for i, item in enumerate(raw["levels"], 1):
            if not isinstance(item, dict):
                raise ConfigurationError(f"{path.name}: level {i} is not a mapping")
            missing = {"width", "height", "time_limit"} - item.keys()
            if missing:
                raise ConfigurationError(
                    f"{path.name}: level {i} is missing {', '.join(sorted(missing))}"
                )
            for key in ("width", "height"):
                if not _is_int(item[key]):
                    raise ConfigurationError(
                        f"{path.name}: level {i} {key} must be a whole number, got {item[key]!r}"
                    )
            time_limit = item["time_limit"]
            if not (_is_int(time_limit) or isinstance(time_limit, float)):
                raise ConfigurationError(
                    f"{path.name}: level {i} time_limit must be a number, got {time_limit!r}"
                )
            try:
                levels.append(
                    LevelDefinition(
                        width=item["width"],
                        height=item["height"],
                        time_limit=float(time_limit),
                    )
                )
            except ConfigurationError as e:
                raise ConfigurationError(f"{path.name}: level {i}: {e}") from e

        if not levels:
            raise ConfigurationError(f"{path.name}: 'levels' is empty")
        return levels
