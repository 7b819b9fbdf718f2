import json
import shutil
import types

import pytest
from fastapi.testclient import TestClient

import results2csv.app as app_module
from results2csv import config
from results2csv.results2csv import Results2CSV


def upload(records, name="results.json"):
    payload = records if isinstance(records, str) else json.dumps(records)
    return {"file": (name, payload.encode("utf-8"), "application/json")}


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "results2csv API is running."}


def test_convert_upload(client, sample_records):
    """Uploading the results sample returns the CSV as a download."""
    response = client.post("/convert", files=upload(sample_records, "batch7.json"))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "batch7.csv" in response.headers["content-disposition"]
    assert response.headers["x-row-count"] == "2"
    assert response.text == Results2CSV().to_csv(sample_records)


def test_convert_upload_with_options(client):
    records = [{"rollNo": "A1", "name": "Smith, J"}, {"rollNo": "A0", "branch": "ECE"}]
    response = client.post(
        "/convert",
        params={"header_strategy": "union", "quoting": "csv"},
        files=upload(records),
    )

    assert response.status_code == 200
    lines = response.text.split("\n")
    assert lines[0] == "rollNo,name,branch," + ",".join(config.TRAILING_HEADERS)
    assert lines[1].startswith('A1,"Smith, J",,')


def test_convert_empty_array(client):
    response = client.post("/convert", files=upload([]))

    assert response.status_code == 200
    assert response.text == ""
    assert response.headers["x-row-count"] == "0"


def test_convert_malformed_upload(client):
    response = client.post("/convert", files=upload("{not json"))

    assert response.status_code == 400
    data = response.json()
    assert data["reason"] == "parse"
    assert "Invalid JSON" in data["error"]


def test_convert_object_upload(client):
    response = client.post("/convert", files=upload({"rollNo": "A1"}))

    assert response.status_code == 400
    assert response.json()["reason"] == "parse"


def test_convert_rejects_unknown_option(client, sample_records):
    response = client.post("/convert", params={"quoting": "tsv"}, files=upload(sample_records))
    assert response.status_code == 422


def test_columns(client):
    response = client.get("/columns")

    assert response.status_code == 200
    data = response.json()
    assert data["trailing"][-1] == "instituteName"
    assert data["trailing"][:8] == [f"SGPA_sem{i}" for i in range(1, 9)]
    assert data["header_strategy"] == ["first", "union"]
    assert data["quoting"] == ["json", "csv"]


def test_failed_upload_save_removes_scratch_dir(client, sample_records, tmp_path, monkeypatch):
    workdir = tmp_path / "scratch"

    def fake_mkdtemp(prefix=None):
        workdir.mkdir()
        return str(workdir)

    def disk_full(src, dst):
        raise OSError("No space left on device")

    monkeypatch.setattr(app_module, "tempfile", types.SimpleNamespace(mkdtemp=fake_mkdtemp))
    monkeypatch.setattr(app_module, "shutil", types.SimpleNamespace(copyfileobj=disk_full, rmtree=shutil.rmtree))

    with pytest.raises(OSError):
        client.post("/convert", files=upload(sample_records))
    assert not workdir.exists()


def test_startup_applies_system_collation(monkeypatch):
    calls = []
    monkeypatch.setattr(app_module, "use_system_collation", lambda: calls.append(True))

    with TestClient(app_module.app):
        pass
    assert calls == [True]
