"""Tests for the pfp-rotator command line."""

import json
from unittest.mock import patch

import pytest

from pfp_rotator.cli import build_parser, main


@pytest.fixture
def local_env(monkeypatch, tmp_path):
    monkeypatch.setenv("LOCAL_VARIATIONS", "1")
    monkeypatch.delenv("BACKGROUND_REPLACEMENT", raising=False)
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "generated-images"))
    return tmp_path / "generated-images"


@pytest.mark.unit
class TestGenerateCommand:
    """pfp-rotator generate <base> [count]"""

    def test_generates_into_storage(self, local_env, tmp_path, photo_bytes):
        base = tmp_path / "me.png"
        base.write_bytes(photo_bytes)

        assert main(["generate", str(base), "3"]) == 0

        pngs = sorted(p.name for p in local_env.glob("generated_*.png"))
        assert len(pngs) == 3
        metadata = json.loads((local_env / "metadata.json").read_text())
        assert metadata["count"] == 3

    def test_default_count(self):
        args = build_parser().parse_args(["generate", "me.png"])
        assert args.count == 10

    def test_missing_base_photo(self, local_env, tmp_path):
        assert main(["generate", str(tmp_path / "missing.png"), "2"]) == 1

    def test_count_out_of_range(self, local_env, tmp_path, photo_bytes):
        base = tmp_path / "me.png"
        base.write_bytes(photo_bytes)

        assert main(["generate", str(base), "51"]) == 1
        assert not local_env.exists()


@pytest.mark.unit
class TestServeCommand:
    """pfp-rotator serve"""

    def test_runs_uvicorn_factory(self, monkeypatch):
        monkeypatch.setenv("PORT", "3100")
        with patch("uvicorn.run") as run:
            assert main(["serve"]) == 0

        args, kwargs = run.call_args
        assert args == ("app.main:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["port"] == 3100
