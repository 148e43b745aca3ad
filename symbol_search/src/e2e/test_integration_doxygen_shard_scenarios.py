import pytest


@pytest.mark.e2e
def test_decode_exact_match_first_then_ascending(engine):
    result = engine.search("decode")
    keys = [g.sort_key for g in result.groups]
    assert keys == [
        "decode", "decodeanswer", "decodemail", "decodename",
        "decodequestion", "decoder", "decoderbuf", "decodeurl",
    ]
    assert result.groups[0].display_name == "decode"
    assert result.groups[0].occurrences[0].qualified_label == "join::Base64"


@pytest.mark.e2e
def test_digest_groups_overloaded_constructors(engine):
    result = engine.search("digest")
    assert [g.display_name for g in result.groups] == ["Digest", "Digestbuf"]
    assert [len(g.occurrences) for g in result.groups] == [3, 3]
    assert result.groups[0].occurrences[1].qualified_label == "join::Digest::Digest(Algorithm algo)"


@pytest.mark.e2e
def test_deserialize_single_group_in_authored_order(engine):
    result = engine.search("deserialize")
    assert len(result.groups) == 1
    occs = result.groups[0].occurrences
    assert len(occs) == 20
    positions = [e.position for e in occs]
    assert positions == sorted(positions)
    assert occs[0].qualified_label == "join::Value::deserialize(std::istream &document)"
    assert occs[4].qualified_label.startswith("join::StreamReader::")
    assert occs[-1].qualified_label == "join::JsonReader::deserialize(std::istream &document) override"


@pytest.mark.e2e
def test_internal_substring_and_case_insensitive_query(engine):
    inner = engine.search("code")
    assert "decode" in [g.sort_key for g in inner.groups]
    shouted = engine.search("  DIGEST ")
    assert [g.display_name for g in shouted.groups] == ["Digest", "Digestbuf"]


@pytest.mark.e2e
def test_anchor_is_split_into_path_and_fragment(engine):
    (group,) = engine.search("dtoa").groups
    anchor = group.occurrences[0].anchor
    assert anchor.path == "../namespacejoin.html"
    assert anchor.fragment == "a34a8a46783566758734bec3eda8caaf0"
    assert str(anchor) == "../namespacejoin.html#a34a8a46783566758734bec3eda8caaf0"
