import cv2
import numpy as np
import pytest

from app import create_app
from X_Ray_Analysis.config import AnalysisConfig
from X_Ray_Analysis.raster import RasterImage


def _bands(rows):
    """Rows where (y // 4) is odd: alternating 4-pixel bands."""
    return np.array([y for y in rows if (y // 4) % 2 == 1])


def leg_pixels(fractured=False):
    """Portrait film, dark background, one bright bone column with textured ends."""
    img = np.full((400, 200), 20, dtype=np.uint8)
    img[:, 70:130] = 210
    for y in _bands(list(range(0, 40)) + list(range(360, 400))):
        img[y, 70:130] = 150
    if fractured:
        for y in _bands(range(140, 260)):
            img[y, 70:130] = 60
    return img


def hand_pixels():
    """Square film: five separated digits over a palm."""
    img = np.full((300, 300), 20, dtype=np.uint8)
    for x in (30, 80, 130, 180, 230):
        img[0:150, x:x + 20] = 200
    img[150:300, 30:250] = 200
    return img


def chest_pixels(abnormal=False):
    """Landscape 520x400 film with soft-tissue corners and striped lung fields."""
    base, stripe = (200, 160) if abnormal else (150, 70)
    img = np.full((400, 520), base, dtype=np.uint8)
    for y in _bands(range(120, 360)):
        img[y, 156:364] = stripe
    return img


def unclear_pixels():
    """Dim square film with a single horizontal bar: matches no anatomy."""
    img = np.full((200, 200), 40, dtype=np.uint8)
    img[140:160, :] = 200
    return img


def png_bytes(pixels):
    ok, buf = cv2.imencode('.png', pixels)
    assert ok
    return buf.tobytes()


@pytest.fixture
def config():
    return AnalysisConfig()


@pytest.fixture
def leg_image():
    return RasterImage(leg_pixels())


@pytest.fixture
def fractured_leg_image():
    return RasterImage(leg_pixels(fractured=True))


@pytest.fixture
def hand_image():
    return RasterImage(hand_pixels())


@pytest.fixture
def chest_image():
    return RasterImage(chest_pixels())


@pytest.fixture
def infected_chest_image():
    return RasterImage(chest_pixels(abnormal=True))


@pytest.fixture
def unclear_image():
    return RasterImage(unclear_pixels())


@pytest.fixture
def gray_image():
    return RasterImage(np.full((100, 100), 128, dtype=np.uint8))


class FakeStore:
    """In-memory stand-in for the MongoDB report store."""

    def __init__(self):
        self.scans = {}
        self.reports = []

    def insert_scan(self, image_path, body_part, patient_id=None):
        scan_id = f"scan-{len(self.scans) + 1}"
        self.scans[scan_id] = {"image_path": image_path, "body_part": body_part,
                               "patient_id": patient_id, "status": "Pending"}
        return scan_id

    def save_report(self, record):
        self.reports.append(record)
        return f"report-{len(self.reports)}"

    def mark_scan_status(self, scan_id, status):
        self.scans[scan_id]["status"] = status

    def list_reports(self, limit=100):
        return [r.to_dict() for r in reversed(self.reports)][:limit]

    def report_stats(self):
        by_severity = {}
        for r in self.reports:
            by_severity[r.severity.value] = by_severity.get(r.severity.value, 0) + 1
        return {"xray_analyses": len(self.scans), "reports": len(self.reports),
                "by_severity": by_severity}


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(store, tmp_path):
    app = create_app(store=store, analysis_config=AnalysisConfig())
    app.config['TESTING'] = True
    app.config['UPLOAD_FOLDER'] = str(tmp_path / "uploads")
    app.config['REFERENCE_IMAGE_DIR'] = None
    with app.test_client() as c:
        yield c
