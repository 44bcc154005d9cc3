"""
Sermon Library - HTTP API Tests

Exercises the FastAPI routes end to end with the in-memory repository and
recording file store injected through create_app().  Validates:
- Multipart create/edit handling (text fields + optional file parts)
- JSON error bodies with an ``error`` key and the right status codes
- Item serialisation (``id``, ``audioFile``, ISO dates)
- Health endpoint
"""

from bson import ObjectId

from tests.conftest import SAMPLE_AUDIO, SAMPLE_THUMBNAIL


def _create(client, files=None, **data):
    form = {"name": "Sermon 1", "date": "2024-01-01", "speaker": "Pastor A", "series": "Advent"}
    form.update(data)
    return client.post("/upload", data=form, files=files or {})


# ===========================================================================
# POST /upload
# ===========================================================================


class TestUpload:
    def test_thumbnail_without_audio(self, client, store):
        resp = _create(
            client,
            files={"thumbnail": ("cover.png", SAMPLE_THUMBNAIL, "image/png")},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["thumbnail"] == store.uploads[0]["id"]
        assert body["audioFile"] is None
        assert body["name"] == "Sermon 1"
        assert body["date"].startswith("2024-01-01T00:00:00")
        assert ObjectId.is_valid(body["id"])

    def test_both_files(self, client, store):
        resp = _create(
            client,
            files={
                "thumbnail": ("cover.png", SAMPLE_THUMBNAIL, "image/png"),
                "audioFile": ("talk.mp3", SAMPLE_AUDIO, "audio/mpeg"),
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["thumbnail"] == "drive-file-1"
        assert body["audioFile"] == "drive-file-2"
        assert store.uploads[1] == {
            "id": "drive-file-2",
            "name": "talk.mp3",
            "mime_type": "audio/mpeg",
            "size": len(SAMPLE_AUDIO),
        }

    def test_round_trip(self, client, store):
        created = _create(
            client, files={"thumbnail": ("cover.png", SAMPLE_THUMBNAIL, "image/png")}
        ).json()
        fetched = client.get(f"/items/{created['id']}").json()
        assert fetched["thumbnail"] == store.uploads[0]["id"]

    def test_missing_date_defaults_to_now(self, client):
        resp = client.post("/upload", data={"name": "Undated"})
        assert resp.status_code == 200
        assert resp.json()["date"] is not None

    def test_invalid_date_is_400(self, client, store):
        resp = _create(client, date="not-a-date")
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert store.calls == []

    def test_upload_failure_is_500(self, client, store):
        store.fail_uploads.add("cover.png")
        resp = _create(
            client, files={"thumbnail": ("cover.png", SAMPLE_THUMBNAIL, "image/png")}
        )
        assert resp.status_code == 500
        assert "cover.png" in resp.json()["error"]


# ===========================================================================
# GET /items, GET /items/{id}
# ===========================================================================


class TestRead:
    def test_list_newest_first(self, client):
        for date in ("2024-01-01", "2024-03-01", "2024-02-01"):
            _create(client, name=date, date=date)
        names = [item["name"] for item in client.get("/items").json()]
        assert names == ["2024-03-01", "2024-02-01", "2024-01-01"]

    def test_list_empty(self, client):
        resp = client.get("/items")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_get_unknown_is_404(self, client):
        resp = client.get(f"/items/{ObjectId()}")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Item not found"}


# ===========================================================================
# PUT /edit/{id}
# ===========================================================================


class TestEdit:
    def test_speaker_only(self, client):
        created = _create(
            client, files={"thumbnail": ("cover.png", SAMPLE_THUMBNAIL, "image/png")}
        ).json()
        resp = client.put(f"/edit/{created['id']}", data={"speaker": "Pastor B"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["speaker"] == "Pastor B"
        for field in ("name", "series", "date", "thumbnail", "audioFile"):
            assert body[field] == created[field]

    def test_replace_thumbnail(self, client, store):
        created = _create(
            client, files={"thumbnail": ("cover.png", SAMPLE_THUMBNAIL, "image/png")}
        ).json()
        old_id = created["thumbnail"]

        resp = client.put(
            f"/edit/{created['id']}",
            files={"thumbnail": ("new.png", SAMPLE_THUMBNAIL, "image/png")},
        )

        assert resp.status_code == 200
        new_id = resp.json()["thumbnail"]
        assert new_id is not None
        assert new_id != old_id
        assert store.deleted == [old_id]

    def test_unknown_is_404(self, client, store):
        resp = client.put(f"/edit/{ObjectId()}", data={"name": "X"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Item not found"
        assert store.calls == []


# ===========================================================================
# DELETE /items/{id}
# ===========================================================================


class TestDelete:
    def test_deletes_item_and_files(self, client, store):
        created = _create(
            client,
            files={
                "thumbnail": ("cover.png", SAMPLE_THUMBNAIL, "image/png"),
                "audioFile": ("talk.mp3", SAMPLE_AUDIO, "audio/mpeg"),
            },
        ).json()

        resp = client.delete(f"/items/{created['id']}")

        assert resp.status_code == 200
        assert resp.json() == {"message": "Item deleted successfully"}
        assert store.deleted == [created["thumbnail"], created["audioFile"]]
        assert client.get(f"/items/{created['id']}").status_code == 404

    def test_unknown_is_404_without_remote_calls(self, client, store):
        resp = client.delete(f"/items/{ObjectId()}")
        assert resp.status_code == 404
        assert "error" in resp.json()
        assert store.calls == []

    def test_malformed_id_is_404(self, client, store):
        resp = client.delete("/items/not-an-object-id")
        assert resp.status_code == 404
        assert store.calls == []


# ===========================================================================
# GET /health
# ===========================================================================


class TestHealth:
    def test_reports_without_database(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["database"] == "unavailable"
        assert "version" in body
