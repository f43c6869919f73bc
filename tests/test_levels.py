"""Unit tests for XP levels."""

from app.users.levels import XP_PER_LEVEL, level_from_xp, level_info, level_title


class TestLevels:
    def test_level_from_xp(self):
        assert level_from_xp(0) == 1
        assert level_from_xp(XP_PER_LEVEL - 1) == 1
        assert level_from_xp(XP_PER_LEVEL) == 2
        assert level_from_xp(250) == 11

    def test_titles(self):
        assert level_title(1) == "Novato"
        assert level_title(10) == "Lenda"
        assert level_title(11) == "Lenda 2"
        assert level_title(15) == "Lenda 6"

    def test_level_info_progress(self):
        info = level_info(60)
        assert info.level == 3
        assert info.title == "Aprendiz"
        assert info.xp_in_level == 10
        assert info.progress_percent == 40

    def test_stored_level_wins(self):
        info = level_info(0, level=5)
        assert info.level == 5
        assert info.title == "Experiente"
        assert info.to_dict()["progress_percent"] == 0
