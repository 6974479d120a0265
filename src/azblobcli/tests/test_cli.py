"""CLI tests against the in-memory backend, run in-process with CliRunner."""
import json
import logging

import pytest
from typer.testing import CliRunner

from azblobcli import InMemoryBlobAdapter, __version__, cli
from azblobcli.cli import app

# ---------------------------
# Fixtures
# ---------------------------


class FailingMetadataAdapter(InMemoryBlobAdapter):
    def get_metadata(self, blob_name):
        raise ConnectionError("connection reset by peer")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "account_name": "account",
                "account_key": "c2VjcmV0",
                "container_name": "container",
            }
        )
    )
    return str(path)


@pytest.fixture
def backend():
    return InMemoryBlobAdapter(page_size=3)


@pytest.fixture
def built(monkeypatch, backend):
    """Route the CLI to the in-memory backend and record each construction."""
    configs = []

    def build_backend(config):
        configs.append(config)
        return backend

    monkeypatch.setattr(cli, "build_backend", build_backend)
    return configs


@pytest.fixture
def run(runner, config_path, built):
    def _run(*args):
        return runner.invoke(app, ["-c", config_path, *args])

    return _run


@pytest.fixture
def content_file(tmp_path):
    path = tmp_path / "content"
    path.write_text("hello")
    return str(path)


# ---------------------------
# Tests
# ---------------------------


def test_version(runner):
    result = runner.invoke(app, ["-v"])
    assert result.exit_code == 0
    assert f"version {__version__}" in result.output


def test_lifecycle(run, built, content_file, tmp_path):
    assert run("put", content_file, "a").exit_code == 0
    assert run("exists", "a").exit_code == 0

    downloaded = tmp_path / "downloaded"
    assert run("get", "a", str(downloaded)).exit_code == 0
    assert downloaded.read_text() == "hello"

    assert run("delete", "a").exit_code == 0
    assert run("exists", "a").exit_code == 3
    assert built[0].container_name == "container"


def test_delete_nonexistent_succeeds(run):
    assert run("delete", "non-existent-file").exit_code == 0


def test_get_nonexistent_fails(run, tmp_path):
    result = run("get", "non-existent-file", str(tmp_path / "out"))
    assert result.exit_code == 1
    assert "performing operation get" in result.output


def test_exists_unknown_exits_1(runner, config_path, monkeypatch):
    monkeypatch.setattr(cli, "build_backend", lambda config: FailingMetadataAdapter())

    result = runner.invoke(app, ["-c", config_path, "exists", "a"])

    assert result.exit_code == 1
    assert "connection reset by peer" in result.output


def test_put_missing_source_fails_before_backend(run, built, tmp_path):
    result = run("put", str(tmp_path / "missing"), "a")

    assert result.exit_code == 1
    assert built == []


def test_put_checksum_mismatch_fails(run, backend, content_file, monkeypatch):
    monkeypatch.setattr(backend, "upload", lambda source, name: b"\x00" * 16)

    result = run("put", content_file, "a")

    assert result.exit_code == 1
    assert "performing operation put" in result.output
    assert "does not match the source file MD5" in result.output


def test_sign_prints_url_without_newline(run, backend):
    result = run("sign", "some-blob", "get", "60s")

    assert result.exit_code == 0
    assert result.stdout.startswith("memory://container/some-blob?")
    assert result.stdout.endswith("timeout=1800")


def test_sign_put_uses_longer_timeout(run):
    result = run("sign", "some-blob", "PUT", "1h")

    assert result.exit_code == 0
    assert result.stdout.endswith("&timeout=2700")
    assert "sp=rc" in result.stdout


def test_sign_unknown_action_fails_before_backend(run, built):
    result = run("sign", "some-blob", "delete", "60s")

    assert result.exit_code == 1
    assert "action not implemented: delete" in result.output
    assert built == []


def test_sign_bad_duration(run, built):
    result = run("sign", "some-blob", "get", "sixty")

    assert result.exit_code == 1
    assert "Expiration should be in the format of a duration" in result.output
    assert built == []


def test_sign_out_of_range_duration(run, built):
    result = run("sign", "some-blob", "get", "9999999999999h")

    assert result.exit_code == 1
    assert "Expiration should be in the format of a duration" in result.output
    assert built == []


def test_list_and_delete_recursive(run, content_file):
    assert run("list").stdout == ""

    for name in ["root-1", "custom-prefix-1", "custom-prefix-2", "other-prefix-1"]:
        assert run("put", content_file, name).exit_code == 0

    assert len(run("list").stdout.splitlines()) == 4
    assert run("list", "custom-prefix-").stdout.splitlines() == [
        "custom-prefix-1",
        "custom-prefix-2",
    ]

    assert run("delete-recursive", "custom-prefix-").exit_code == 0
    assert run("list", "custom-prefix-").stdout == ""
    assert run("list", "other-prefix-").stdout.splitlines() == ["other-prefix-1"]

    assert run("delete-recursive").exit_code == 0
    assert run("list").stdout == ""


def test_copy(run, content_file, tmp_path):
    run("put", content_file, "source")

    assert run("copy", "source", "dest").exit_code == 0
    assert run("exists", "dest").exit_code == 0

    downloaded = tmp_path / "copied"
    run("get", "dest", str(downloaded))
    assert downloaded.read_text() == "hello"


def test_copy_missing_source_fails(run):
    result = run("copy", "missing", "dest")
    assert result.exit_code == 1
    assert "performing operation copy" in result.output


def test_properties(run, content_file):
    run("put", content_file, "blob")

    result = run("properties", "blob")

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["content_length"] == 5
    assert payload["etag"]
    assert payload["last_modified"]


def test_properties_missing_blob(run):
    result = run("properties", "missing")
    assert result.exit_code == 0
    assert result.stdout.strip() == "{}"


def test_ensure_bucket_exists(run):
    assert run("ensure-bucket-exists").exit_code == 0


def test_missing_config_option(runner, built):
    result = runner.invoke(app, ["exists", "a"])
    assert result.exit_code == 1
    assert "configuration path is required" in result.output


def test_invalid_config_file(runner, built, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"account_name": "account"}))

    result = runner.invoke(app, ["-c", str(path), "exists", "a"])

    assert result.exit_code == 1
    assert "account_key is required" in result.output
    assert built == []


def test_wrong_argument_count_is_usage_error(run):
    assert run("put", "only-one").exit_code == 2


def test_backend_errors_do_not_leak_as_tracebacks(run, backend, monkeypatch):
    def boom(blob_name):
        raise RuntimeError("boom")

    monkeypatch.setattr(backend, "delete", boom)

    result = run("delete", "y")

    assert result.exit_code == 1
    assert "performing operation delete: boom" in result.output


@pytest.fixture
def azure_logger():
    azure_log = logging.getLogger("azure")
    level = azure_log.level
    yield azure_log
    azure_log.setLevel(level)


def test_sdk_http_logging_is_quiet_by_default(run, azure_logger):
    assert run("list").exit_code == 0
    assert azure_logger.level == logging.WARNING


def test_debug_enables_sdk_logging(runner, config_path, built, azure_logger):
    result = runner.invoke(app, ["-c", config_path, "--debug", "list"])

    assert result.exit_code == 0
    assert azure_logger.level == logging.DEBUG
