from pathlib import Path

import yaml

from dcreport.config import load_config, normalize_config


def test_defaults_are_reproducible():
    raw = {"paths": {"data_dir": "data"}}
    cfg1 = normalize_config(raw)
    cfg2 = normalize_config(raw)

    assert cfg1.to_dict() == cfg2.to_dict()
    assert yaml.safe_dump(cfg1.to_dict(), sort_keys=True) == yaml.safe_dump(
        cfg2.to_dict(), sort_keys=True
    )

    assert cfg1.paths.reports_dir == "reports"
    assert cfg1.report.clients_query_limit == 20
    assert cfg1.report.max_workers == 1
    assert cfg1.report.color_seed is None
    assert cfg1.logging.level == "INFO"


def test_yaml_roundtrip(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text(
        "paths:\n  data_dir: data\nreport:\n  max_workers: 4\n  color_seed: 7\nlogging:\n  level: debug\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.report.max_workers == 4
    assert cfg.logging.level == "DEBUG"
    assert normalize_config(yaml.safe_load(yaml.safe_dump(cfg.to_dict()))) == cfg


def test_data_dir_is_optional_and_resolves_inputs(tmp_path):
    cfg = normalize_config({"paths": {"reports_dir": "out"}})
    assert cfg.paths.data_dir == "."
    assert cfg.paths.reports_dir == "out"

    cfg = normalize_config({"paths": {"data_dir": "data"}})
    assert cfg.paths.resolve_input("deals.parquet") == Path("data") / "deals.parquet"
    absolute = tmp_path / "clients.json"
    assert cfg.paths.resolve_input(absolute) == absolute
