import json
from pathlib import Path

import pytest

from frontend.__main__ import main


@pytest.mark.e2e
def test_single_query_as_json(search_dir: Path, capsys):
    rc = main(["--source", str(search_dir), "--index", "functions", "--q", "digest", "--json"])
    assert rc == 0
    rows = json.loads(capsys.readouterr().out)
    assert [r["name"] for r in rows] == ["Digest", "Digestbuf"]
    assert len(rows[0]["occurrences"]) == 3


@pytest.mark.e2e
def test_repl_appends_lines_like_keystrokes(search_dir: Path, capsys, monkeypatch):
    lines = iter(["de", "str", "#", "dtoa", ""])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
    rc = main(["--source", str(search_dir), "--index", "functions", "--repl", "--json"])
    assert rc == 0
    out = capsys.readouterr().out
    # "de" + "str" -> "destr" (destroy); after "#" the buffer restarts at "dtoa"
    assert '"name": "destroy"' in out
    assert '"name": "dtoa"' in out
    assert "(reset)" in out


@pytest.mark.e2e
def test_pack_then_query_bundle(search_dir: Path, tmp_path: Path, capsys):
    bundle = tmp_path / "bundle.sqlite"
    assert main(["--source", str(search_dir), "--pack", str(bundle)]) == 0
    assert "packed 1 shards" in capsys.readouterr().out

    assert main(["--source", f"sqlite:///{bundle}", "--index", "functions", "--q", "dtoa"]) == 0
    out = capsys.readouterr().out
    assert "dtoa" in out and "../namespacejoin.html#a34a8a46783566758734bec3eda8caaf0" in out


def test_nothing_to_do_is_a_usage_error(search_dir: Path):
    with pytest.raises(SystemExit):
        main(["--source", str(search_dir)])
