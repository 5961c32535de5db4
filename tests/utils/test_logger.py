import logging

import pytest

from stibuilder.utils import parse_module_levels
from stibuilder.utils.logger import _apply_module_levels, _normalize_module_name


@pytest.fixture
def restore_level():
    """Restore a logger's level after the test changes it."""
    saved = []

    def _watch(name: str) -> logging.Logger:
        target = logging.getLogger(name)
        saved.append((target, target.level))
        return target
    yield _watch
    for target, level in saved:
        target.setLevel(level)


class TestModuleLevels:

    def test_parse_skips_malformed_pairs(self):
        assert parse_module_levels("bld=debug, broken ,eng=INFO") == {"bld": "DEBUG", "eng": "INFO"}

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("bld", "stibuilder.builder.build"),
            ("val", "stibuilder.builder.validate"),
            ("engine", "stibuilder.engine"),
            ("builder.*", "stibuilder.builder"),
            ("io.lock", "stibuilder.io.lock"),
            ("stibuilder.cli", "stibuilder.cli"),
            ("docker", "docker"),
        ],
    )
    def test_normalize(self, name, expected):
        assert _normalize_module_name(name) == expected

    def test_env_var_levels_applied(self, monkeypatch, restore_level):
        target = restore_level("stibuilder.builder.context")
        monkeypatch.setenv("STIB_LOG_LEVELS", "ctx=WARNING")

        _apply_module_levels(None)

        assert target.level == logging.WARNING

    def test_unknown_level_is_ignored(self, restore_level, caplog):
        target = restore_level("stibuilder.builder.artifacts")
        before = target.level

        with caplog.at_level(logging.WARNING):
            _apply_module_levels({"art": "LOUD"})

        assert target.level == before
        assert "Ignoring unknown log level 'LOUD'" in caplog.text
