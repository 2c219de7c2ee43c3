import io

from _helpers import unwrap


def _upload(client, content: bytes, name="entries.csv"):
    files = {"file": (name, io.BytesIO(content), "text/csv")}
    return client.post("/api/data/import", files=files)


def test_import_creates_entries(client):
    csv = b"timestamp,value,category,source\n2024-03-01T09:00:00Z,10,Sales,Web\n2024-03-02,20.5,Ops,Store\n"
    r = _upload(client, csv)
    assert r.status_code == 201, r.text
    data = unwrap(r.json())
    assert data["imported"] == 2
    assert data["error_count"] == 0
    assert data["duplicates"] == []
    assert [e["value"] for e in data["data"]] == [10, 20.5]

    listed = unwrap(client.get("/api/data").json())
    assert listed["pagination"]["total_count"] == 2


def test_partial_import_is_still_created(client):
    r = _upload(client, b"value,category,source\n10,Sales,Web\n,Sales,Web\n")
    assert r.status_code == 201
    data = unwrap(r.json())
    assert data["imported"] == 1
    assert data["errors"] == ["Row 3: Missing required fields (value, category, source)"]


def test_non_csv_filename_is_rejected(client):
    r = _upload(client, b"value,category,source\n1,a,b\n", name="entries.txt")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "UNSUPPORTED_FILE_TYPE"


def test_broken_csv_is_rejected_whole(client):
    r = _upload(client, b"value,category,source\n1,a,b\n2,a\n")
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "CSV_PARSE_ERROR"
    assert err["details"]["errors"]
    assert unwrap(client.get("/api/data").json())["pagination"]["total_count"] == 0


def test_too_many_errors_returns_400(client):
    rows = b"".join(b"0,Sales,Web\n" for _ in range(51))
    r = _upload(client, b"value,category,source\n" + rows)
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "TOO_MANY_ERRORS"
    assert err["details"]["total_errors"] == 51
    assert len(err["details"]["errors"]) == 50
