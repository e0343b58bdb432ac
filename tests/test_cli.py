"""Tests for configuration loading and the command line entry point."""
import json

from pyredirects.__main__ import main
from pyredirects.bloom import BloomFilter
from pyredirects.config import DEFAULT_TIMEOUT_SECONDS, EdgeConfigSettings
from pyredirects.store import FileStore


def test_settings_from_env():
    """Test loading settings from an environment mapping."""
    settings = EdgeConfigSettings.from_env(
        {
            "SITECORE_SITE_NAME": "mysite",
            "EDGE_CONFIG_ENDPOINT": "https://api.example.test/items",
            "EDGE_CONFIG_VERCEL_TOKEN": "secret",
            "EDGE_CONFIG_READ_URL": "https://edge.example.test/ecfg_1",
            "EDGE_CONFIG_TIMEOUT_SECONDS": "1.5",
        }
    )
    assert settings.site_name == "mysite"
    assert settings.token == "secret"
    assert settings.read_token is None
    assert settings.timeout == 1.5
    assert settings.can_publish
    assert settings.can_read


def test_settings_from_empty_env():
    """Test that empty variables count as unset."""
    settings = EdgeConfigSettings.from_env({"EDGE_CONFIG_ENDPOINT": ""})
    assert settings.endpoint is None
    assert settings.timeout == DEFAULT_TIMEOUT_SECONDS
    assert not settings.can_publish
    assert not settings.can_read


def test_build_and_check(tmp_path, capsys):
    """Test building a snapshot file and querying it."""
    keys = tmp_path / "keys.txt"
    keys.write_text("/promo?x=1\n\n/old-page/\n", encoding="utf-8")
    out = tmp_path / "filter.json"

    assert main(["build", str(keys), "-o", str(out)]) == 0
    bf = BloomFilter.from_json(out.read_text(encoding="utf-8"))
    assert bf.has("/promo")
    assert bf.has("/old-page")

    assert main(["check", str(out), "/promo/", "/old-page?a=b"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["possible\t/promo/", "possible\t/old-page?a=b"]


def test_build_to_stdout(tmp_path, capsys):
    """Test building a snapshot to stdout."""
    keys = tmp_path / "keys.txt"
    keys.write_text("/a\n", encoding="utf-8")
    assert main(["build", str(keys), "-e", "0.01"]) == 0
    record = json.loads(capsys.readouterr().out)
    assert record["hashFunctions"] >= 1


def test_build_rejects_bad_error_rate(tmp_path):
    """Test the exit code for an invalid error rate."""
    keys = tmp_path / "keys.txt"
    keys.write_text("/a\n", encoding="utf-8")
    assert main(["build", str(keys), "-e", "2"]) == 1


def test_check_malformed_snapshot(tmp_path):
    """Test the exit code for a malformed snapshot."""
    snapshot = tmp_path / "filter.json"
    snapshot.write_text('{"bitArray": []}', encoding="utf-8")
    assert main(["check", str(snapshot), "/a"]) == 1


def test_publish_to_file_store(tmp_path):
    """Test publishing into a local snapshot directory."""
    keys = tmp_path / "keys.txt"
    keys.write_text("/promo\n/old-page/\n", encoding="utf-8")
    store_dir = tmp_path / "snapshots"
    assert main(["publish", str(keys), "--site", "mysite", "--store-dir", str(store_dir)]) == 0
    assert FileStore(store_dir).path_for("mysite").exists()


def test_check_non_utf8_snapshot(tmp_path):
    """Test that a binary snapshot file is reported instead of crashing."""
    snapshot = tmp_path / "filter.json"
    snapshot.write_bytes(b"\xff\xfe\xfa\x00garbage")
    assert main(["check", str(snapshot), "/a"]) == 1
