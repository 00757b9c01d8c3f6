"""
Tests for sentiment_backtester.run_meta
---------------------------------------
Coverage:
- Input file provenance (size, mtime, sha256).
- Config dump hashing with credentials masked.
"""

import json
import os
import time
from pathlib import Path

from sentiment_backtester.config import Config, DataCfg
from sentiment_backtester.run_meta import (
    build_run_meta,
    sha256_file,
    sha256_text,
    stable_json_dumps,
    write_run_meta,
)


def test_run_meta_records_input_files(tmp_path: Path) -> None:
    p = tmp_path / "prices.json"
    p.write_text("{}", encoding="utf-8")
    past = time.time() - 3600
    os.utime(p, (past, past))

    meta = build_run_meta(
        cmd="pytest",
        argv=[],
        run_id="t",
        outputs_dir=tmp_path,
        inputs={"prices": str(p), "news": str(tmp_path / "missing.json")},
    )

    info = meta["inputs"]["prices"]
    assert info["size_bytes"] == 2
    assert info["sha256"] == sha256_file(p)
    assert info["mtime_utc"].startswith(
        time.strftime("%Y-%m-%d", time.gmtime(past))
    )
    assert meta["inputs"]["news"] == {"path": str(tmp_path / "missing.json")}


def test_config_dump_masks_api_key(tmp_path: Path) -> None:
    cfg = Config(data=DataCfg(api_key="super-secret"))
    meta = build_run_meta(
        cmd="pytest", argv=[], run_id="t", outputs_dir=tmp_path, config_obj=cfg
    )

    assert meta["config_dump"]["data"]["api_key"] == "***"
    assert cfg.data.api_key == "super-secret"
    assert meta["config_dump_sha256"] == sha256_text(stable_json_dumps(meta["config_dump"]))
    assert "super-secret" not in json.dumps(meta)


def test_write_run_meta(tmp_path: Path) -> None:
    meta = build_run_meta(cmd="pytest", argv=["a"], run_id="t", outputs_dir=tmp_path)
    path = write_run_meta(tmp_path / "nested", meta)
    assert path.name == "run_meta.json"
    assert json.loads(path.read_text())["argv"] == ["a"]
    assert "git_sha" in meta
