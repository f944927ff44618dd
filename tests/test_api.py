"""
Tests for the annotator HTTP API.

Validates:
- Every route's success payload and error status codes
- Answers as plain text and as JSON strings
- Term listing and lookup pagination
- Final save when the app shuts down
"""

import pytest
from fastapi.testclient import TestClient

from annotator.ledger import AnnotationLedger
from annotator.main import create_app
from annotator.persistence import codec, load_records
from annotator.settings import AnnotatorSettings


def no_autosave(**kwargs):
    return AnnotatorSettings(autosave_seconds=0, **kwargs)


@pytest.fixture
def ledger(records_file):
    return AnnotationLedger.from_path(records_file)


@pytest.fixture
def client(ledger):
    app = create_app(ledger, no_autosave(data_path=ledger.path))
    with TestClient(app) as c:
        yield c


class TestRoot:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "annotator"
        assert data["records"] == 5
        assert data["todo"] == 3


class TestItemEndpoints:
    """GET/PUT /api/item/{index}."""

    def test_get_item(self, client):
        response = client.get("/api/item/0")

        assert response.status_code == 200
        data = response.json()
        assert data["input"] == "Amsterdam"
        assert data["id"] == "src_0"
        assert data["type"] == "place"
        assert [c["id"] for c in data["candidates"]] == ["Amsterdam_a", "Amsterdam_b"]

    def test_get_item_uses_controlaccess_key(self, client):
        data = client.get("/api/item/1").json()

        assert data["controlaccess"] is True
        assert data["golden"] == "Amsterdam_a"

    @pytest.mark.parametrize("index", [5, 99, -1])
    def test_get_item_out_of_range(self, client, index):
        response = client.get(f"/api/item/{index}")

        assert response.status_code == 404

    def test_get_item_non_integer(self, client):
        response = client.get("/api/item/abc")

        assert response.status_code == 422

    def test_put_answer_plain_text(self, client, ledger):
        response = client.put("/api/item/0", content="Amsterdam_b")

        assert response.status_code == 200
        assert response.json() == {"index": 0, "done": 3}
        assert ledger.get_record(0).golden == "Amsterdam_b"

    def test_put_answer_json_string(self, client, ledger):
        response = client.put("/api/item/3", json="?")

        assert response.status_code == 200
        assert ledger.get_record(3).golden == "?"

    def test_put_answer_twice(self, client):
        first = client.put("/api/item/4", content="Amsterdam_a")
        second = client.put("/api/item/4", content="Amsterdam_b")

        assert first.status_code == 200
        assert second.status_code == 409
        assert client.get("/api/item/4").json()["golden"] == "Amsterdam_a"
        assert client.get("/api/statistics").json()["done"] == first.json()["done"]

    def test_put_answer_preanswered(self, client):
        response = client.put("/api/item/2", content="Utrecht_a")

        assert response.status_code == 409

    def test_put_answer_out_of_range(self, client):
        response = client.put("/api/item/5", content="x")

        assert response.status_code == 404

    def test_put_empty_answer(self, client, ledger):
        response = client.put("/api/item/0", content="")

        assert response.status_code == 400
        assert not ledger.is_answered(0)

    @pytest.mark.parametrize("body", ["{not json", "42", '["a"]'])
    def test_put_bad_json_answer(self, client, body):
        response = client.put(
            "/api/item/0",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_put_non_utf8_answer(self, client):
        response = client.put("/api/item/0", content=b"\xff\xfe")

        assert response.status_code == 400


class TestLedgerEndpoints:
    """randomindex, statistics, dump and save."""

    def test_random_index_is_unanswered(self, client):
        for _ in range(20):
            response = client.get("/api/randomindex")
            assert response.status_code == 200
            assert response.json() in (0, 3, 4)

    def test_random_index_exhausted(self, client):
        for i in (0, 3, 4):
            assert client.put(f"/api/item/{i}", content="?").status_code == 200

        response = client.get("/api/randomindex")

        assert response.status_code == 404

    def test_statistics(self, client):
        assert client.get("/api/statistics").json() == {"todo": 3, "done": 2, "total": 5}

        client.put("/api/item/0", content="?")

        assert client.get("/api/statistics").json() == {"todo": 2, "done": 3, "total": 5}

    def test_dump(self, client):
        response = client.get("/api/dump")

        assert response.status_code == 200
        data = response.json()
        assert [r["input"] for r in data] == [
            "Amsterdam", "Amsterdam", "Utrecht", "Leiden", "Amsterdam",
        ]

    def test_save(self, client, records_file):
        client.put("/api/item/0", content="Amsterdam_b")

        response = client.post("/api/save")

        assert response.status_code == 200
        assert response.json() == {"saved": str(records_file)}
        assert load_records(records_file)[0].golden == "Amsterdam_b"

    def test_save_failure_is_500(self, client, records_file, monkeypatch):
        before = records_file.read_bytes()

        def failing_encode(record):
            raise ValueError("simulated failure")

        monkeypatch.setattr(codec, "encode_record", failing_encode)

        response = client.post("/api/save")

        assert response.status_code == 500
        assert str(records_file) in response.json()["detail"]
        assert records_file.read_bytes() == before

    def test_save_without_path_is_409(self, mixed_records):
        app = create_app(AnnotationLedger(mixed_records), no_autosave())
        with TestClient(app) as client:
            response = client.post("/api/save")

        assert response.status_code == 409


class TestTermEndpoints:
    """GET /api/terms and /api/terms/{term}."""

    def test_list_terms(self, client):
        response = client.get("/api/terms")

        assert response.status_code == 200
        assert response.json() == [
            {"key": "Amsterdam", "freq": 3},
            {"key": "Utrecht", "freq": 1},
            {"key": "Leiden", "freq": 1},
        ]

    def test_list_terms_page(self, client):
        response = client.get("/api/terms", params={"from": 1, "size": 1})

        assert response.json() == [{"key": "Utrecht", "freq": 1}]

    def test_list_terms_past_end(self, client):
        response = client.get("/api/terms", params={"from": 10})

        assert response.status_code == 200
        assert response.json() == []

    def test_list_terms_default_page_size(self, ledger):
        app = create_app(ledger, no_autosave(page_size=1))
        with TestClient(app) as client:
            response = client.get("/api/terms")

        assert [t["key"] for t in response.json()] == ["Amsterdam"]

    @pytest.mark.parametrize("params", [{"from": -1}, {"size": -1}])
    def test_negative_parameters(self, client, params):
        assert client.get("/api/terms", params=params).status_code == 422
        assert client.get("/api/terms/Amsterdam", params=params).status_code == 422

    def test_lookup_term(self, client):
        client.put("/api/item/4", content="Amsterdam_a")

        response = client.get("/api/terms/Amsterdam")

        assert response.status_code == 200
        data = response.json()
        assert data["term"] == "Amsterdam"
        assert data["total"] == 3
        assert data["restricted"] == 2
        assert data["from"] == 0
        assert data["occurrences"] == [
            {"index": 1, "source": "src_1", "restricted": True, "answered": True},
            {"index": 4, "source": "src_4", "restricted": True, "answered": True},
            {"index": 0, "source": "src_0", "restricted": False, "answered": False},
        ]

    def test_lookup_term_page(self, client):
        response = client.get("/api/terms/Amsterdam", params={"from": 2, "size": 5})

        data = response.json()
        assert [o["index"] for o in data["occurrences"]] == [0]
        assert data["size"] == 5

    def test_lookup_record_without_id(self, client):
        data = client.get("/api/terms/Leiden").json()

        assert data["occurrences"] == [
            {"index": 3, "source": None, "restricted": False, "answered": False},
        ]

    def test_lookup_unknown_term(self, client):
        response = client.get("/api/terms/Rotterdam")

        assert response.status_code == 404
        assert "Rotterdam" in response.json()["detail"]


class TestLifespan:
    """Startup and shutdown behaviour."""

    def test_final_save_on_shutdown(self, ledger, records_file):
        app = create_app(ledger, no_autosave(data_path=ledger.path))
        with TestClient(app) as client:
            assert client.put("/api/item/3", content="?").status_code == 200
            assert load_records(records_file)[3].golden == ""

        assert load_records(records_file)[3].golden == "?"

    def test_clean_shutdown_does_not_rewrite(self, ledger, records_file):
        before = records_file.stat().st_mtime_ns
        app = create_app(ledger, no_autosave(data_path=ledger.path))
        with TestClient(app) as client:
            client.get("/api/statistics")

        assert records_file.stat().st_mtime_ns == before

    def test_autosave_started_and_stopped(self, ledger):
        app = create_app(ledger, AnnotatorSettings(autosave_seconds=60))
        with TestClient(app):
            saver = app.state.saver
            assert saver is not None
            assert saver.running

        assert not saver.running

    def test_no_autosave_when_disabled(self, ledger):
        app = create_app(ledger, no_autosave())
        with TestClient(app):
            assert app.state.saver is None
