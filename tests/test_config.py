import os
from pathlib import Path

from s3_sluice import config
from s3_sluice.config import EngineSettings
from s3_sluice.utils import NegativeRegex, as_directory, compile_matcher, read_yaml


def test_defaults():
    s = EngineSettings.defaults()
    assert (s.concurrency, s.retries, s.retry_wait) == (10, 3, 10)


def test_defaults_follow_module_constants(monkeypatch):
    monkeypatch.setattr(config, "CONCURRENCY", 4)
    assert EngineSettings.defaults().concurrency == 4


def test_from_config_engine_section():
    s = EngineSettings.from_config({"engine": {"concurrency": 20, "retry_wait": 0.5}})
    assert (s.concurrency, s.retries, s.retry_wait) == (20, 3, 0.5)


def test_from_config_missing_section():
    assert EngineSettings.from_config({}) == EngineSettings.defaults()
    assert EngineSettings.from_config(None) == EngineSettings.defaults()


def test_override_keeps_unset_values():
    s = EngineSettings(5, 1, 2).override(retries=0)
    assert (s.concurrency, s.retries, s.retry_wait) == (5, 0, 2)


def test_read_yaml(tmp_path: Path):
    p = tmp_path / "config.yaml"
    p.write_text("engine:\n  concurrency: 2\ncopy:\n  from: s3://a/in/\n", encoding="utf-8")
    assert read_yaml(str(p)) == {"engine": {"concurrency": 2}, "copy": {"from": "s3://a/in/"}}


def test_read_empty_yaml(tmp_path: Path):
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    assert read_yaml(str(p)) == {}


def test_compile_matcher_positive_is_a_search():
    m = compile_matcher(r"\.csv")
    assert m("in/2024/data.csv.gz")
    assert not m("in/readme.md")


def test_compile_matcher_default_matches_everything():
    assert compile_matcher(None)("x")


def test_compile_matcher_negative():
    m = compile_matcher(NegativeRegex(r"\.tmp$"))
    assert m("in/a.csv")
    assert not m("in/a.tmp")


def test_as_directory(tmp_path: Path):
    assert as_directory("/tmp/out/") == "/tmp/out/"
    assert as_directory(tmp_path).endswith(("/", "\\"))


def test_as_directory_empty_is_working_directory():
    assert as_directory("") == os.curdir + os.sep
