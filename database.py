import datetime
import os

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from pymongo import DESCENDING, MongoClient

load_dotenv()

STATUS_PENDING = "Pending"
STATUS_COMPLETED = "Completed"
STATUS_REUPLOAD = "Re-upload Required"


def _scan_key(scan_id):
    try:
        return ObjectId(scan_id)
    except (InvalidId, TypeError):
        return scan_id


def _serialize(doc):
    doc = dict(doc)
    for key in ("_id", "scan_id"):
        if isinstance(doc.get(key), ObjectId):
            doc[key] = str(doc[key])
    for key, value in doc.items():
        if isinstance(value, datetime.datetime):
            doc[key] = value.isoformat()
    return doc


class MongoDB:
    """Report store: uploaded scans and the diagnosis reports written for them."""

    def __init__(self, uri=None, db_name=None):
        self.uri = uri or os.getenv("MONGO_URI", "mongodb://localhost:27017")
        self.db_name = db_name or os.getenv("MONGO_DB_NAME", "xray_diagnostics")
        self.client = MongoClient(self.uri)
        self.db = self.client[self.db_name]

        self.scans = self.db["x_ray_scans"]
        self.reports = self.db["x_ray_reports"]

    def insert_scan(self, image_path, body_part, patient_id=None):
        result = self.scans.insert_one({
            "image_path": image_path,
            "body_part": body_part,
            "patient_id": patient_id,
            "status": STATUS_PENDING,
            "upload_date": datetime.datetime.now(datetime.timezone.utc),
        })
        return str(result.inserted_id)

    def save_report(self, record):
        """Persist a DiagnosisRecord keyed by its scan id."""
        doc = record.to_dict()
        doc.pop("outcome", None)
        doc["scan_id"] = _scan_key(record.scan_id)
        doc["generated_date"] = datetime.datetime.now(datetime.timezone.utc)
        result = self.reports.insert_one(doc)
        return str(result.inserted_id)

    def mark_scan_status(self, scan_id, status):
        self.scans.update_one({"_id": _scan_key(scan_id)}, {"$set": {"status": status}})

    def list_reports(self, limit=100):
        docs = self.reports.find().sort("generated_date", DESCENDING).limit(limit)
        return [_serialize(doc) for doc in docs]

    def report_stats(self):
        by_severity = {}
        for row in self.reports.aggregate([{"$group": {"_id": "$severity", "count": {"$sum": 1}}}]):
            by_severity[row["_id"]] = row["count"]
        return {
            "xray_analyses": self.scans.count_documents({}),
            "reports": sum(by_severity.values()),
            "by_severity": by_severity,
        }

    def close(self):
        if self.client:
            self.client.close()
