from pathlib import Path

from orrery.core.config import RENDER_CFG, TEXTURE_DIR_ENV, resolve_texture_dir


def test_texture_dir_defaults_to_config(monkeypatch):
    monkeypatch.delenv(TEXTURE_DIR_ENV, raising=False)
    assert resolve_texture_dir() == RENDER_CFG.texture_dir


def test_texture_dir_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(TEXTURE_DIR_ENV, str(tmp_path))
    assert resolve_texture_dir() == tmp_path


def test_explicit_texture_dir_wins(monkeypatch, tmp_path):
    monkeypatch.setenv(TEXTURE_DIR_ENV, "/somewhere/else")
    assert resolve_texture_dir(tmp_path / "maps") == tmp_path / "maps"
    assert resolve_texture_dir("textures") == Path("textures")


def test_empty_environment_value_is_ignored(monkeypatch):
    monkeypatch.setenv(TEXTURE_DIR_ENV, "")
    assert resolve_texture_dir() == RENDER_CFG.texture_dir
