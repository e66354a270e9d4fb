# tests/dataloader/test_config_loader.py

from pathlib import Path

import pytest
import yaml

from alchemist.dataloader.config_loader import ConfigLoader
from alchemist.errors import ConfigError
from alchemist.schemas.models import Config


@pytest.fixture()
def tmp_yaml(tmp_path: Path) -> Path:
    """Temporary config.yaml with a valid set of fields."""
    path = tmp_path / "config.yaml"
    cfg = {
        "clients_file": "in/clients.csv",
        "workers_file": "in/workers.xlsx",
        "output_dir": "out",
        "priority_profile": "Maximize Fulfillment",
        "validation": {"fail_on_warnings": True},
    }
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f)
    return path


def test_load_valid_yaml_returns_config(tmp_yaml: Path):
    """
    @brief
    Verify that valid YAML is correctly parsed and validated.

    @details
    Confirms that nested sections not present in the file fall back to
    their defaults.
    """
    # --- Arrange ---
    loader = ConfigLoader()

    # --- Act ---
    cfg = loader.load(tmp_yaml)

    # --- Assert ---
    assert isinstance(cfg, Config)
    assert cfg.clients_file == "in/clients.csv"
    assert cfg.tasks_file is None
    assert cfg.priority_profile == "Maximize Fulfillment"
    assert cfg.validation.fail_on_warnings is True
    assert cfg.validation.write_report is True
    assert cfg.export.filename == "allocation_config.json"
    assert cfg.metrics.save_metrics is True


def test_overrides_replace_file_values(tmp_yaml: Path):
    # --- Act ---
    cfg = ConfigLoader().load(tmp_yaml, overrides={"output_dir": "elsewhere", "log_level": None})

    # --- Assert ---
    assert cfg.output_dir == "elsewhere"
    # None overrides are ignored
    assert cfg.log_level == "INFO"


def test_invalid_override_is_rejected(tmp_yaml: Path):
    with pytest.raises(ConfigError):
        ConfigLoader().load(tmp_yaml, overrides={"log_level": "LOUD"})


def test_empty_yaml_gives_defaults(tmp_path: Path):
    """
    @brief
    Empty configuration file is accepted.

    @details
    Every field has a default, so an empty file describes a run with no
    input files and default weights.
    """
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    # --- Act ---
    cfg = ConfigLoader().load(path)

    # --- Assert ---
    assert cfg == Config()


def test_missing_file_raises_configerror(tmp_path: Path):
    # --- Arrange ---
    loader = ConfigLoader()
    path = tmp_path / "no_such.yaml"

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        loader.load(path)

    # --- Assert ---
    assert "Configuration file not found" in str(e.value)


def test_wrong_extension_raises_configerror(tmp_path: Path):
    path = tmp_path / "config.txt"
    path.write_text("output_dir: out", encoding="utf-8")

    with pytest.raises(ConfigError):
        ConfigLoader().load(path)


def test_yaml_with_extra_field_raises_configerror(tmp_yaml: Path):
    """
    @brief
    Extra field in YAML causes validation error.
    """
    # --- Arrange ---
    data = yaml.safe_load(tmp_yaml.read_text())
    data["extra_field"] = 42
    tmp_yaml.write_text(yaml.safe_dump(data), encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(tmp_yaml)

    # --- Assert ---
    assert "extra" in str(e.value).lower()


def test_invalid_type_raises_configerror(tmp_yaml: Path):
    # --- Arrange ---
    data = yaml.safe_load(tmp_yaml.read_text())
    data["validation"] = {"write_report": "sometimes"}
    tmp_yaml.write_text(yaml.safe_dump(data), encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(tmp_yaml)

    # --- Assert ---
    assert "Invalid configuration structure" in str(e.value)


def test_invalid_path_type_raises_configerror(tmp_path: Path):
    """
    @brief
    Non-Path argument triggers ConfigError.
    """
    # --- Arrange ---
    wrong_type = str(tmp_path / "config.yaml")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader()._read_yaml(wrong_type)

    # --- Assert ---
    msg = str(e.value)
    assert "Invalid path type" in msg
    assert "pathlib.Path" in msg


def test_yaml_parsing_error_raises_configerror(tmp_path: Path):
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text("output_dir: 'out\nlog_level: INFO", encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader()._read_yaml(path)

    # --- Assert ---
    msg = str(e.value)
    assert "YAML parsing failed" in msg
    assert "Fix YAML syntax" in msg


def test_unable_to_read_file_raises_configerror(monkeypatch, tmp_path: Path):
    """
    @brief
    Simulates OSError when opening file.
    """
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text("output_dir: out", encoding="utf-8")

    def fake_open(*args, **kwargs):
        raise OSError("Permission denied")

    monkeypatch.setattr(Path, "open", fake_open)

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader()._read_yaml(path)

    # --- Assert ---
    msg = str(e.value)
    assert "Unable to read configuration file" in msg
    assert "Permission denied" in msg


def test_yaml_root_not_mapping_raises_configerror(tmp_path: Path):
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text("- one\n- two\n", encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader()._read_yaml(path)

    # --- Assert ---
    assert "Configuration root must be a mapping" in str(e.value)
