import pytest

from frontend.web import app as flask_app


@pytest.fixture
def client(engine, monkeypatch):
    import frontend.web as webmod
    monkeypatch.setattr(webmod, "_engine", engine)
    return flask_app.test_client()


@pytest.mark.e2e
def test_search_api_returns_grouped_json(client):
    rv = client.get("/api/search?q=digest")
    assert rv.status_code == 200
    data = rv.get_json()
    assert [g["name"] for g in data["groups"]] == ["Digest", "Digestbuf"]
    first = data["groups"][0]["occurrences"][0]
    for key in ("label", "anchor", "path", "fragment"):
        assert key in first
    assert first["path"] == "../classjoin_1_1Digest.html"
    assert data["total"] == 6
    assert data["warnings"] == []


@pytest.mark.e2e
def test_search_api_limit_and_empty_query(client):
    limited = client.get("/api/search?q=decode&k=3").get_json()
    assert [g["name"] for g in limited["groups"]] == ["decode", "decodeAnswer", "decodeMail"]
    empty = client.get("/api/search?q=%20%20").get_json()
    assert empty["groups"] == [] and empty["total"] == 0


@pytest.mark.e2e
def test_health_reports_loaded_buckets(client):
    before = client.get("/api/health").get_json()
    assert before["ok"] is True and before["buckets"] == 1 and before["loaded"] == 0
    client.get("/api/search?q=dump")
    assert client.get("/api/health").get_json()["loaded"] == 1


def test_api_without_engine_is_unavailable(monkeypatch):
    import frontend.web as webmod
    monkeypatch.setattr(webmod, "_engine", None)
    client = flask_app.test_client()
    assert client.get("/api/health").status_code == 503
    assert client.get("/api/search?q=x").status_code == 503
