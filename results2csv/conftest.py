import json
import locale

import pytest
from fastapi.testclient import TestClient

from results2csv.app import app

SAMPLE_RECORDS = [
    {"rollNo": "A1", "SGPA": {"sem1": 8.5}, "instituteName": "X"},
    {"rollNo": "A3", "SGPA": {}, "instituteName": "Y"},
]


COLLATION_LOCALES = ["en_US.UTF-8", "en_US.utf8", "en_GB.UTF-8", "de_DE.UTF-8"]


@pytest.fixture(autouse=True)
def restore_collation():
    """Entry points switch LC_COLLATE; put it back after every test."""
    saved = locale.setlocale(locale.LC_COLLATE)
    yield
    locale.setlocale(locale.LC_COLLATE, saved)


@pytest.fixture
def natural_collation():
    """Switch LC_COLLATE to an installed language locale, or skip."""
    for name in COLLATION_LOCALES:
        try:
            return locale.setlocale(locale.LC_COLLATE, name)
        except locale.Error:
            continue
    pytest.skip("no language locale installed")


@pytest.fixture
def sample_records():
    """Fresh copy of the two-record results sample for each test."""
    return json.loads(json.dumps(SAMPLE_RECORDS))


@pytest.fixture
def write_json(tmp_path):
    """Write a value as JSON into tmp_path and return the file path."""
    def _write(data, name="results.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


@pytest.fixture(scope="function")
def client():
    """Create a test client for the converter API."""
    with TestClient(app) as test_client:
        yield test_client
