from pathlib import Path
import pytest
from recipe_box.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("RECIPE_BOX_DATA_DIR", "RECIPE_BOX_USER_ID", "RECIPE_BOX_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_config_defaults():
    config = Config()
    assert config.data_dir == Path.home() / ".recipe_box"
    assert config.user_id == "local"
    assert config.max_desired_servings == 1000
    assert config.max_recipes_per_list == 50
    assert config.log_level == "WARNING"


def test_config_reads_env(monkeypatch, tmp_path):
    monkeypatch.setenv("RECIPE_BOX_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("RECIPE_BOX_USER_ID", "alice")
    config = Config()
    assert config.data_dir == tmp_path
    assert config.user_id == "alice"


def test_log_level_is_normalized(monkeypatch):
    monkeypatch.setenv("RECIPE_BOX_LOG_LEVEL", "debug")
    assert Config().log_level == "DEBUG"


def test_unknown_log_level_raises(monkeypatch):
    monkeypatch.setenv("RECIPE_BOX_LOG_LEVEL", "chatty")
    with pytest.raises(ValueError, match="Unknown log level"):
        Config()


def test_blank_user_id_raises(monkeypatch):
    monkeypatch.setenv("RECIPE_BOX_USER_ID", "   ")
    with pytest.raises(ValueError, match="RECIPE_BOX_USER_ID"):
        Config()
