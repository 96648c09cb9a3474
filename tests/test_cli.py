# tests/test_cli.py
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from prooflog.cli.main import app, format_bytes
from prooflog.codec.document import export_document
from prooflog.ledger.store import LedgerStore

runner = CliRunner()

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


@pytest.fixture
def store_uri(tmp_path: Path) -> str:
    return f"sqlite://{tmp_path / 'cli-proofs.db'}"


@pytest.fixture
def sample_files(tmp_path: Path):
    a = tmp_path / "hello.txt"
    a.write_text("Hello world", encoding="utf-8")
    b = tmp_path / "empty.bin"
    b.write_bytes(b"")
    return [a, b]


@pytest.fixture
def populated_store(store_uri: str, sample_files) -> str:
    """Store with 2 proofs."""
    result = runner.invoke(app, ["certify", *map(str, sample_files), "--store", store_uri])
    assert result.exit_code == 0, result.stdout
    return store_uri


def test_format_bytes():
    assert format_bytes(0) == "0.00 B"
    assert format_bytes(1536) == "1.50 KB"
    assert format_bytes(5 * 1024 ** 3) == "5.00 GB"
    assert format_bytes(1024 ** 5) == "1024.00 TB"


def test_history_empty(store_uri: str):
    result = runner.invoke(app, ["history", "--store", store_uri])
    assert result.exit_code == 0
    assert "no proofs recorded" in result.stdout.lower()


def test_certify_records_proofs(populated_store: str):
    ledger = LedgerStore(populated_store)
    records = ledger.records
    ledger.close()

    assert [r.filename for r in records] == ["empty.bin", "hello.txt"]
    assert records[0].digest_hex == EMPTY_SHA256


def test_certify_missing_file_exits_1(store_uri: str, sample_files, tmp_path: Path):
    result = runner.invoke(
        app, ["certify", str(tmp_path / "ghost.txt"), str(sample_files[0]), "--store", store_uri]
    )
    assert result.exit_code == 1
    assert "ghost.txt" in result.stdout

    ledger = LedgerStore(store_uri)
    assert ledger.length == 1
    ledger.close()


def test_history_lists_proofs(populated_store: str):
    result = runner.invoke(app, ["history", "--store", populated_store, "--limit", "5"])
    assert result.exit_code == 0
    assert "hello.txt" in result.stdout
    assert "empty.bin" in result.stdout
    assert "2 proofs" in result.stdout


@pytest.mark.parametrize("limit", ["0", "-3"])
def test_history_limit_must_be_positive(populated_store: str, limit: str):
    result = runner.invoke(app, ["history", "--store", populated_store, "--limit", limit])
    assert result.exit_code == 2


def test_last_json(populated_store: str):
    result = runner.invoke(app, ["last", "--json", "--store", populated_store])
    assert result.exit_code == 0
    summary = json.loads(result.stdout)
    assert summary["filename"] == "empty.bin"
    assert summary["sha256Hex"] == EMPTY_SHA256
    assert "id" not in summary


def test_last_empty(store_uri: str):
    result = runner.invoke(app, ["last", "--store", store_uri])
    assert result.exit_code == 1


def test_verify_known_and_unknown(populated_store: str, sample_files, tmp_path: Path):
    result = runner.invoke(app, ["verify", str(sample_files[0]), "--store", populated_store])
    assert result.exit_code == 0
    assert "matches 1" in result.stdout

    stranger = tmp_path / "stranger.txt"
    stranger.write_text("never certified", encoding="utf-8")
    result = runner.invoke(app, ["verify", str(stranger), "--store", populated_store])
    assert result.exit_code == 1
    assert "no proof recorded" in result.stdout.lower()


def test_export_then_import_roundtrip(populated_store: str, tmp_path: Path):
    output_file = tmp_path / "export-test.json"
    result = runner.invoke(app, ["export", "--store", populated_store, "--output", str(output_file)])
    assert result.exit_code == 0
    assert "Exported 2 proofs" in result.stdout

    exported = json.loads(output_file.read_text(encoding="utf-8"))
    assert len(exported) == 2
    assert output_file.read_text(encoding="utf-8").startswith("[\n  {")

    other_store = f"sqlite://{tmp_path / 'other.db'}"
    result = runner.invoke(app, ["import", str(output_file), "--store", other_store])
    assert result.exit_code == 0
    assert "Imported 2 proofs" in result.stdout

    src, dst = LedgerStore(populated_store), LedgerStore(other_store)
    assert dst.records == src.records
    src.close()
    dst.close()


def test_export_default_filename(populated_store: str, tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["export", "--store", populated_store])
    assert result.exit_code == 0
    [exported] = list(tmp_path.glob("prooflog-proofs-*.json"))
    assert ":" not in exported.name


def test_import_invalid_leaves_ledger(populated_store: str, tmp_path: Path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"not": "an array"}', encoding="utf-8")

    result = runner.invoke(app, ["import", str(bad), "--store", populated_store])
    assert result.exit_code == 1
    assert "unchanged" in result.stdout

    ledger = LedgerStore(populated_store)
    assert ledger.length == 2
    ledger.close()


def test_import_deeply_nested_file_exits_1(populated_store: str, tmp_path: Path):
    deep = tmp_path / "deep.json"
    deep.write_text("[" * 100_000 + "]" * 100_000, encoding="ascii")

    result = runner.invoke(app, ["import", str(deep), "--store", populated_store])
    assert result.exit_code == 1
    assert "unchanged" in result.stdout

    ledger = LedgerStore(populated_store)
    assert ledger.length == 2
    ledger.close()


def test_import_replaces_wholesale(populated_store: str, tmp_path: Path):
    doc = tmp_path / "empty.json"
    doc.write_bytes(export_document([]))
    result = runner.invoke(app, ["import", str(doc), "--store", populated_store])
    assert result.exit_code == 0

    ledger = LedgerStore(populated_store)
    assert ledger.length == 0
    ledger.close()


def test_clear_with_confirmation(populated_store: str):
    result = runner.invoke(app, ["clear", "--store", populated_store], input="n\n")
    assert result.exit_code != 0
    ledger = LedgerStore(populated_store)
    assert ledger.length == 2
    ledger.close()

    result = runner.invoke(app, ["clear", "--store", populated_store, "--yes"])
    assert result.exit_code == 0
    assert "Cleared 2 proofs" in result.stdout
    ledger = LedgerStore(populated_store)
    assert ledger.length == 0
    ledger.close()


def test_store_from_env(monkeypatch, tmp_path: Path, sample_files):
    monkeypatch.setenv("PROOFLOG_STORE", f"json:{tmp_path / 'env-store.json'}")
    result = runner.invoke(app, ["certify", str(sample_files[0])])
    assert result.exit_code == 0
    assert (tmp_path / "env-store.json").exists()


def test_ticker_prints_events(monkeypatch):
    from prooflog.feed.client import FeedEvent

    class FakeFeedClient:
        def __init__(self, url):
            self.url = url
            self.closed = False

        def events(self):
            yield FeedEvent(id="1-1", ts=1, kind="INIT", hex="00ff")
            yield FeedEvent(id="2-2", ts=2, kind="ANCHOR", hex="abcd")
            yield FeedEvent(id="3-3", ts=3, kind="CERT", hex="beef")

        def close(self):
            self.closed = True

    monkeypatch.setattr("prooflog.feed.client.FeedClient", FakeFeedClient)
    result = runner.invoke(app, ["ticker", "--url", "http://feed/api/ticker", "--limit", "2"])
    assert result.exit_code == 0
    assert "[INIT] 00ff" in result.stdout
    assert "[ANCHOR] abcd" in result.stdout
    assert "beef" not in result.stdout
    assert "Received 2 events" in result.stdout


def test_ticker_transport_error(monkeypatch):
    from prooflog.core.errors import FeedTransportError

    class DeadFeedClient:
        def __init__(self, url):
            pass

        def events(self):
            raise FeedTransportError("Feed connection to http://feed failed: refused")
            yield  # pragma: no cover

        def close(self):
            pass

    monkeypatch.setattr("prooflog.feed.client.FeedClient", DeadFeedClient)
    result = runner.invoke(app, ["ticker", "--url", "http://feed"])
    assert result.exit_code == 1
    assert "refused" in result.stdout


def test_serve_runs_uvicorn(monkeypatch):
    calls = {}

    def fake_run(app_, host, port):
        calls["app"], calls["host"], calls["port"] = app_, host, port

    monkeypatch.setattr("uvicorn.run", fake_run)
    result = runner.invoke(app, ["serve", "--port", "9123"])
    assert result.exit_code == 0
    assert calls["port"] == 9123
    assert calls["app"].state.feed_settings.interval > 0
