import datetime
from types import SimpleNamespace

import pytest
from bson import ObjectId

from database import STATUS_COMPLETED, MongoDB, _scan_key, _serialize
from X_Ray_Analysis.models import DiagnosisRecord, Severity


class FakeCollection:
    def __init__(self):
        self.inserted = []
        self.updates = []

    def insert_one(self, doc):
        self.inserted.append(doc)
        return SimpleNamespace(inserted_id=ObjectId())

    def update_one(self, query, update):
        self.updates.append((query, update))


@pytest.fixture
def mongo():
    db = MongoDB(uri="mongodb://localhost:27017", db_name="xray_test")
    db.scans, db.reports = FakeCollection(), FakeCollection()
    yield db
    db.close()


def test_scan_key_accepts_object_ids_and_plain_strings():
    oid = ObjectId()
    assert _scan_key(str(oid)) == oid
    assert _scan_key("scan-1") == "scan-1"


def test_serialize_makes_documents_json_friendly():
    oid = ObjectId()
    when = datetime.datetime(2024, 1, 2, 3, 4, 5)
    doc = _serialize({"_id": oid, "scan_id": oid, "generated_date": when, "severity": "Normal"})
    assert doc == {"_id": str(oid), "scan_id": str(oid),
                   "generated_date": "2024-01-02T03:04:05", "severity": "Normal"}


def test_save_report_keys_by_scan(mongo):
    scan_id = str(ObjectId())
    record = DiagnosisRecord("Normal", Severity.NORMAL, "Routine follow-up prescribed.",
                             "Visual Verification: Chest.", 98, scan_id)
    mongo.save_report(record)

    [doc] = mongo.reports.inserted
    assert doc["scan_id"] == ObjectId(scan_id)
    assert doc["severity"] == "Normal"
    assert doc["confidence"] == 98
    assert "outcome" not in doc


def test_insert_scan_and_complete(mongo):
    scan_id = mongo.insert_scan("/uploads/a.png", "Hand", patient_id="p1")
    assert mongo.scans.inserted[0]["status"] == "Pending"

    mongo.mark_scan_status(scan_id, STATUS_COMPLETED)
    query, update = mongo.scans.updates[0]
    assert query == {"_id": ObjectId(scan_id)}
    assert update == {"$set": {"status": "Completed"}}
