from __future__ import annotations

from pathlib import Path

from waveformer.schemas.config import AppConfig
from waveformer.services.config_store import load_config, save_config


def test_defaults_allow_any_host(tmp_path: Path) -> None:
    config = load_config(tmp_path / "config.json", environ={})

    assert config.allowed_domains == ["*"]
    assert config.concurrency == 1
    assert config.scratch_dir is None


def test_save_then_load(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.json"
    save_config(AppConfig(allowed_domains=["*.example.com"], concurrency=4, ffprobe_bin="/opt/ffprobe"), path)

    config = load_config(path, environ={})

    assert config.allowed_domains == ["*.example.com"]
    assert config.concurrency == 4
    assert config.ffprobe_bin == "/opt/ffprobe"


def test_environment_overrides_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    save_config(AppConfig(allowed_domains=["old.example.com"]), path)

    config = load_config(
        path,
        environ={
            "VALID_URL_DOMAINS": " media.example.com , *.cdn.example.com,,",
            "WAVEFORMER_CONCURRENCY": "8",
            "WAVEFORMER_SCRATCH_DIR": "/var/tmp/waveformer",
        },
    )

    assert config.allowed_domains == ["media.example.com", "*.cdn.example.com"]
    assert config.concurrency == 8
    assert config.scratch_dir == "/var/tmp/waveformer"


def test_bad_concurrency_is_ignored(tmp_path: Path) -> None:
    config = load_config(tmp_path / "config.json", environ={"WAVEFORMER_CONCURRENCY": "many"})

    assert config.concurrency == 1


def test_empty_allow_list_means_any_host() -> None:
    assert AppConfig(allowed_domains=[" ", ""]).allowed_domains == ["*"]
