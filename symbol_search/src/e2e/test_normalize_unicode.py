import json

from searchindex.loader import parse_shard
from searchindex.matcher import filter_entries
from searchindex.normalize import normalize_query


def test_trim_and_casefold():
    assert normalize_query("  DeCode\t") == "decode"
    assert normalize_query("Straße") == "strasse"
    assert normalize_query(None) == ""


def test_composed_and_decomposed_accents_match():
    doc = json.dumps([["caf\u00e9", ["menu::Items", "menu.html#c"]]])
    shard = parse_shard("all_3", doc)
    decomposed = "cafe\u0301"
    assert normalize_query(decomposed) == "caf\u00e9"
    assert [e.display_name for e in filter_entries([shard], decomposed)] == ["caf\u00e9"]


def test_casefold_reaches_further_than_lowercase():
    doc = json.dumps([["Straße", ["geo::Map", "map.html#s"]], ["Stream", ["io::Stream", "io.html#s"]]])
    shard = parse_shard("all_19", doc)
    assert [e.sort_key for e in shard.entries] == ["strasse", "stream"]
    assert [e.display_name for e in filter_entries([shard], "ss")] == ["Straße"]
