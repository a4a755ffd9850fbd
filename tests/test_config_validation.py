import pytest

from dcreport.config import ConfigError, load_config, normalize_config


def test_missing_required_key():
    # paths が無い場合は即例外
    with pytest.raises(ConfigError):
        normalize_config({"report": {}})


def test_type_mismatch_raises():
    with pytest.raises(ConfigError):
        normalize_config({"paths": {"data_dir": 123}})
    with pytest.raises(ConfigError):
        normalize_config({"paths": {"data_dir": "data"}, "report": {"max_workers": 0}})
    with pytest.raises(ConfigError):
        normalize_config({"paths": {"data_dir": "data"}, "report": {"color_seed": "x"}})
    with pytest.raises(ConfigError):
        normalize_config({"paths": {"data_dir": "data"}, "logging": {"level": "LOUD"}})


def test_invalid_yaml_fails(tmp_path):
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text("paths: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(bad_file)


def test_missing_file_fails(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "none.yaml")
