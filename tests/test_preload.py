"""Tests for preload scripts."""

import os

import pytest

from mtr_collection.errors import InvalidOptionError, MissingPathError
from mtr_collection.preload import apply_preload, load_preload_environment, _parse_env_dump


def test_parse_env_dump():
    data = b"A=1\0B=x=y\0MULTI=line1\nline2\0\0"
    assert _parse_env_dump(data) == {'A': '1', 'B': 'x=y', 'MULTI': 'line1\nline2'}


def test_load_preload_environment(tmp_path):
    script = tmp_path / "env.sh"
    script.write_text(
        "echo 'noise on stdout'\n"
        "export MTR_BUILD_THREAD=300\n"
        "export MTR_PRELOAD_PATH=\"/opt/mysql bin\"\n"
        "LOCAL_ONLY=1\n"
    )

    env = load_preload_environment(script)

    assert env['MTR_BUILD_THREAD'] == '300'
    assert env['MTR_PRELOAD_PATH'] == '/opt/mysql bin'
    assert 'LOCAL_ONLY' not in env


def test_apply_preload_updates_environment(tmp_path, monkeypatch):
    monkeypatch.setenv('MTR_BUILD_THREAD', 'before')
    script = tmp_path / "env.sh"
    script.write_text("export MTR_BUILD_THREAD=300\n")

    changed = apply_preload(script)

    assert os.environ['MTR_BUILD_THREAD'] == '300'
    assert 'MTR_BUILD_THREAD' in changed


def test_missing_script(tmp_path):
    with pytest.raises(MissingPathError):
        load_preload_environment(tmp_path / "missing.sh")


def test_failing_script(tmp_path):
    script = tmp_path / "env.sh"
    script.write_text("echo 'cannot set up' >&2\nfalse\n")

    with pytest.raises(InvalidOptionError, match="cannot set up"):
        load_preload_environment(script)
