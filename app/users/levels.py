"""XP levels shown on profiles and in the ranking."""

from dataclasses import asdict, dataclass
from typing import Optional

XP_PER_LEVEL = 25
MAX_TITLED_LEVEL = 10

LEVEL_TITLES = {
    1: "Novato",
    2: "Iniciante",
    3: "Aprendiz",
    4: "Conhecedor",
    5: "Experiente",
    6: "Veterano",
    7: "Expert",
    8: "Mestre",
    9: "Grão-Mestre",
    10: "Lenda",
}


@dataclass
class LevelInfo:
    level: int
    title: str
    xp_in_level: int
    progress_percent: int

    def to_dict(self) -> dict:
        return asdict(self)


def level_from_xp(xp: int) -> int:
    return max(1, xp // XP_PER_LEVEL + 1)


def level_title(level: int) -> str:
    """Levels past 10 are numbered legends: 11 -> "Lenda 2"."""
    if level > MAX_TITLED_LEVEL:
        return f"Lenda {level - 9}"
    return LEVEL_TITLES.get(max(1, level), LEVEL_TITLES[1])


def level_info(xp: int, level: Optional[int] = None) -> LevelInfo:
    """
    Level summary for ``xp``.

    A stored ``level`` wins over the one derived from xp, so admins can
    adjust levels by hand.
    """
    current = level or level_from_xp(xp)
    xp_in_level = xp % XP_PER_LEVEL
    return LevelInfo(
        level=current,
        title=level_title(current),
        xp_in_level=xp_in_level,
        progress_percent=round(xp_in_level / XP_PER_LEVEL * 100),
    )
