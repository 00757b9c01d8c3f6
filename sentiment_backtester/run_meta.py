"""
Run Metadata
------------
Provenance for CLI runs: when and with what code, config and inputs a
backtest was produced. Written next to the other artifacts as run_meta.json.
"""

from __future__ import annotations

import hashlib
import json
import platform
import subprocess
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def stable_json_dumps(obj: Any) -> str:
    """Sorted, compact JSON so equal configs hash equal."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def sha256_file(path: str | Path, *, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


def try_git_sha() -> Optional[str]:
    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return out.decode("utf-8").strip()


def _input_info(path: str) -> Dict[str, Any]:
    p = Path(path)
    info: Dict[str, Any] = {"path": path}
    if p.is_file():
        stat = p.stat()
        info["size_bytes"] = stat.st_size
        info["mtime_utc"] = datetime.fromtimestamp(
            stat.st_mtime, tz=timezone.utc
        ).isoformat()
        info["sha256"] = sha256_file(p)
    return info


def build_run_meta(
    *,
    cmd: str,
    argv: list[str],
    run_id: str,
    outputs_dir: str | Path,
    config_path: Optional[str] = None,
    config_obj: Optional[Any] = None,
    inputs: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Collects the metadata dictionary for one run.

    ``inputs`` maps a role ("prices", "news") to a file path; each existing
    file is recorded with size, mtime and sha256.
    """
    meta: Dict[str, Any] = {
        "cmd": cmd,
        "run_id": run_id,
        "argv": argv,
        "outputs_dir": str(Path(outputs_dir)),
        "timestamp_utc": utc_now_iso(),
        "git_sha": try_git_sha(),
        "env": {
            "python": sys.version.split()[0],
            "platform": platform.platform(),
        },
    }

    if config_path:
        meta["config_path"] = config_path
        meta["config_sha256"] = sha256_file(config_path)

    if config_obj is not None and is_dataclass(config_obj):
        cfg_dict = asdict(config_obj)
        # never persist credentials
        if isinstance(cfg_dict.get("data"), dict) and cfg_dict["data"].get("api_key"):
            cfg_dict["data"]["api_key"] = "***"
        meta["config_dump"] = cfg_dict
        meta["config_dump_sha256"] = sha256_text(stable_json_dumps(cfg_dict))

    if inputs:
        meta["inputs"] = {role: _input_info(p) for role, p in inputs.items()}

    return meta


def write_run_meta(outputs_dir: str | Path, meta: Dict[str, Any]) -> Path:
    out_dir = Path(outputs_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / "run_meta.json"
    path.write_text(json.dumps(meta, indent=2), encoding="utf-8")
    return path
