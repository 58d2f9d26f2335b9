"""Shared fixtures: keep every test away from the real ~/.config."""
import pytest

from fusion_kbd import conf


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Point conf at a per-test config directory."""
    config_dir = tmp_path / "fusion-kbd"
    monkeypatch.setattr(conf, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(conf, "CONFIG_PATH", str(config_dir / "config.json"))
    return config_dir
