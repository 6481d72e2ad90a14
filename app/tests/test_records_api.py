"""Record endpoint tests"""

import json
import uuid
from datetime import datetime

from sqlalchemy import func, select

from app.models import Record
from app.tests.conftest import AUTH, TestingSessionLocal


def record_count() -> int:
    with TestingSessionLocal() as session:
        return session.execute(select(func.count()).select_from(Record)).scalar()


def record_body(source_id, external_id="ext-1", **extra):
    body = {
        "source_id": str(source_id),
        "external_id": external_id,
        "created_at": "2024-05-01T12:00:00Z",
        "author": "alice",
        "title": "Great phone",
        "body": "Battery lasts two days",
        "rating": 4.5,
        "url": "https://example.com/r/1",
        "lang": "en",
        "product": "phone-x",
        "tags": {"campaign": "spring"},
    }
    body.update(extra)
    return body


class TestCreateAndRead:
    """Create, read and delete single records"""

    def test_create_then_get_round_trips_fields(self, client, make_source):
        source = make_source()
        payload = record_body(source.id)

        resp = client.post("/records", json=payload, headers=AUTH)
        assert resp.status_code == 201
        created = resp.json()["item"]

        resp = client.get(f"/records/{created['id']}")
        assert resp.status_code == 200
        item = resp.json()["item"]

        for field in ("external_id", "author", "title", "body", "rating", "url", "lang", "product", "tags"):
            assert item[field] == payload[field]
        assert item["source_id"] == str(source.id)
        assert datetime.fromisoformat(item["created_at"]) == datetime.fromisoformat("2024-05-01T12:00:00+00:00")

    def test_ext_id_alias_accepted(self, client, make_source):
        source = make_source()
        body = record_body(source.id)
        body["ext_id"] = body.pop("external_id")

        resp = client.post("/records", json=body, headers=AUTH)
        assert resp.status_code == 201
        assert resp.json()["item"]["external_id"] == "ext-1"

    def test_missing_required_field_is_400(self, client, make_source):
        source = make_source()
        body = record_body(source.id)
        del body["created_at"]

        resp = client.post("/records", json=body, headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["ok"] is False
        assert record_count() == 0

    def test_duplicate_external_id_is_store_error(self, client, make_source):
        source = make_source()
        assert client.post("/records", json=record_body(source.id), headers=AUTH).status_code == 201

        resp = client.post("/records", json=record_body(source.id), headers=AUTH)
        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "error": "database error"}
        assert record_count() == 1

    def test_malformed_id_is_400(self, client):
        resp = client.get("/records/not-a-uuid")
        assert resp.status_code == 400

    def test_missing_id_is_404(self, client):
        resp = client.get(f"/records/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "record not found"

    def test_delete_then_get_is_404(self, client, make_source):
        source = make_source()
        rid = client.post("/records", json=record_body(source.id), headers=AUTH).json()["item"]["id"]

        resp = client.delete(f"/records/{rid}", headers=AUTH)
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "deleted": rid}
        assert client.get(f"/records/{rid}").status_code == 404

    def test_delete_missing_is_404(self, client):
        resp = client.delete(f"/records/{uuid.uuid4()}", headers=AUTH)
        assert resp.status_code == 404


class TestAuth:
    """Writes need the API bearer token"""

    def test_create_without_token_is_401(self, client, make_source):
        source = make_source()
        resp = client.post("/records", json=record_body(source.id))
        assert resp.status_code == 401
        assert resp.json() == {"ok": False, "error": "unauthorized"}
        assert record_count() == 0

    def test_create_with_wrong_token_is_401(self, client, make_source):
        source = make_source()
        resp = client.post("/records", json=record_body(source.id), headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert record_count() == 0

    def test_delete_without_token_keeps_row(self, client, make_source):
        source = make_source()
        rid = client.post("/records", json=record_body(source.id), headers=AUTH).json()["item"]["id"]

        assert client.delete(f"/records/{rid}").status_code == 401
        assert client.get(f"/records/{rid}").status_code == 200

    def test_bulk_without_token_is_401(self, client, make_source):
        source = make_source()
        resp = client.post("/records/bulk", content=json.dumps(record_body(source.id)))
        assert resp.status_code == 401
        assert record_count() == 0


class TestListing:
    """Filtering, ordering and paging"""

    def _seed(self, client, source_id):
        rows = [
            record_body(source_id, "a", created_at="2024-01-01T00:00:00Z", rating=2.0, product="p1", title="Meh"),
            record_body(source_id, "b", created_at="2024-03-01T00:00:00Z", rating=5.0, product="p2", body="Loved IT"),
            record_body(source_id, "c", created_at="2024-02-01T00:00:00Z", rating=3.5, product="p1", author="Bob"),
        ]
        for row in rows:
            assert client.post("/records", json=row, headers=AUTH).status_code == 201

    def test_newest_created_first(self, client, make_source):
        source = make_source()
        self._seed(client, source.id)

        items = client.get("/records").json()["items"]
        assert [i["external_id"] for i in items] == ["b", "c", "a"]

    def test_filters(self, client, make_source):
        source = make_source()
        self._seed(client, source.id)

        def ids(**params):
            return [i["external_id"] for i in client.get("/records", params=params).json()["items"]]

        assert ids(product="p1") == ["c", "a"]
        assert ids(rating_gte=3.5) == ["b", "c"]
        assert ids(rating_lte=3.5) == ["c", "a"]
        assert ids(since="2024-02-01T00:00:00Z") == ["b", "c"]
        assert ids(q="loved") == ["b"]
        assert ids(q="bob") == ["c"]
        assert ids(source_id=str(source.id)) == ["b", "c", "a"]
        assert ids(source_id=str(uuid.uuid4())) == []

    def test_limit_is_clamped(self, client, make_source):
        source = make_source()
        self._seed(client, source.id)

        body = client.get("/records", params={"limit": 500}).json()
        assert body["limit"] == 100

        body = client.get("/records", params={"limit": 0}).json()
        assert body["limit"] == 1
        assert len(body["items"]) == 1

        body = client.get("/records", params={"limit": "abc", "offset": -5}).json()
        assert body["limit"] == 20
        assert body["offset"] == 0

    def test_offset(self, client, make_source):
        source = make_source()
        self._seed(client, source.id)

        items = client.get("/records", params={"limit": 1, "offset": 1}).json()["items"]
        assert [i["external_id"] for i in items] == ["c"]

    def test_bad_filters_are_400(self, client):
        assert client.get("/records", params={"since": "yesterday"}).status_code == 400
        assert client.get("/records", params={"rating_gte": "high"}).status_code == 400
        assert client.get("/records", params={"source_id": "xyz"}).status_code == 400

    def test_pretty_output_is_newline_terminated(self, client):
        compact = client.get("/records")
        pretty = client.get("/records?pretty")

        assert compact.text.endswith("\n")
        assert "\n  " not in compact.text
        assert pretty.text.endswith("\n")
        assert "\n  " in pretty.text
        assert "\n  " not in client.get("/records?pretty=0").text


class TestBulk:
    """NDJSON bulk upsert"""

    def test_bad_line_is_reported_and_rest_inserted(self, client, make_source):
        source = make_source()
        lines = [
            json.dumps(record_body(source.id, "l1")),
            "{not json",
            json.dumps(record_body(source.id, "l3")),
        ]

        resp = client.post("/records/bulk", content="\n".join(lines), headers=AUTH)
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["took_lines"] == 3
        assert body["inserted"] == 2
        assert body["updated"] == 0
        assert len(body["errors"]) == 1
        assert body["errors"][0]["line"] == 2
        assert record_count() == 2

    def test_line_numbers_count_blank_lines(self, client, make_source):
        source = make_source()
        bad = record_body(source.id, "x")
        del bad["created_at"]
        text = "\n".join([json.dumps(record_body(source.id, "ok1")), "", "   ", json.dumps(bad)])

        body = client.post("/records/bulk", content=text, headers=AUTH).json()
        assert body["took_lines"] == 2
        assert body["inserted"] == 1
        assert body["errors"][0]["line"] == 4
        assert "created_at" in body["errors"][0]["error"]

    def test_second_upload_updates(self, client, make_source):
        source = make_source()
        text = "\n".join(json.dumps(record_body(source.id, f"r{i}")) for i in range(3))

        first = client.post("/records/bulk", content=text, headers=AUTH).json()
        second = client.post("/records/bulk", content=text, headers=AUTH).json()

        assert (first["inserted"], first["updated"]) == (3, 0)
        assert (second["inserted"], second["updated"]) == (0, 3)
        assert record_count() == 3

    def test_second_upload_replaces_carried_fields(self, client, make_source):
        source = make_source()
        first = json.dumps(record_body(source.id, "r1", rating=1.0))
        client.post("/records/bulk", content=first, headers=AUTH)

        changed = json.dumps(
            record_body(source.id, "r1", rating=5.0, title="Changed my mind", product="phone-y", tags={"campaign": "fall"})
        )
        body = client.post("/records/bulk", content=changed, headers=AUTH).json()
        assert (body["inserted"], body["updated"]) == (0, 1)

        with TestingSessionLocal() as session:
            record = session.execute(select(Record).where(Record.external_id == "r1")).scalar_one()
        assert record.rating == 5.0
        assert record.title == "Changed my mind"
        assert record.product == "phone-y"
        assert record.tags == {"campaign": "fall"}

    def test_second_upload_leaves_omitted_fields(self, client, make_source):
        source = make_source()
        client.post("/records/bulk", content=json.dumps(record_body(source.id, "r1")), headers=AUTH)

        sparse = {"source_id": str(source.id), "external_id": "r1", "created_at": "2024-05-02T08:00:00Z", "rating": 2.0}
        client.post("/records/bulk", content=json.dumps(sparse), headers=AUTH)

        with TestingSessionLocal() as session:
            record = session.execute(select(Record).where(Record.external_id == "r1")).scalar_one()
        assert record.rating == 2.0
        assert record.title == "Great phone"
        assert record.lang == "en"

    def test_unknown_source_fails_only_that_line(self, client, make_source):
        source = make_source()
        text = "\n".join(
            [
                json.dumps(record_body(uuid.uuid4(), "orphan")),
                json.dumps(record_body(source.id, "kept")),
            ]
        )

        body = client.post("/records/bulk", content=text, headers=AUTH).json()
        assert body["inserted"] == 1
        assert body["errors"] == [{"line": 1, "error": "database error"}]

    def test_empty_body_is_400(self, client):
        resp = client.post("/records/bulk", content="\n  \n", headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["error"] == "empty body"
