import logging
import os

import pydicom
from flask import Blueprint, current_app, jsonify, request
from pydicom.errors import InvalidDicomError
from werkzeug.utils import secure_filename

from X_Ray_Analysis.models import BodyPart
from X_Ray_Analysis.pipeline import classify_file

logger = logging.getLogger(__name__)

x_ray_bp = Blueprint('x_ray_analyze', __name__)

PREVIEW_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.bmp', '.dcm', '.dicom']

# Header keywords -> body part, checked in order
BODY_PART_KEYWORDS = [
    (("HAND", "FINGER", "WRIST", "CARPAL"), BodyPart.HAND),
    (("CHEST", "THORAX", "LUNG"), BodyPart.CHEST),
    (("LEG", "KNEE", "TIBIA", "FIBULA", "FEMUR", "ANKLE", "FOOT", "EXTREMITY"), BodyPart.LEG),
]


def extract_body_part(dicom_path):
    """
    Guess the body part from DICOM header fields.

    Looks at BodyPartExamined, AcquisitionDeviceProcessingDescription,
    StudyDescription and SeriesDescription; Unknown when nothing matches.
    """
    try:
        ds = pydicom.dcmread(dicom_path, stop_before_pixels=True)
    except (InvalidDicomError, OSError) as e:
        logger.warning("Could not read DICOM header from %s: %s", dicom_path, e)
        return BodyPart.UNKNOWN

    def get_str(tag):
        val = ds.get(tag)
        return val.value.strip() if val is not None and isinstance(val.value, str) else ''

    candidates = [
        get_str((0x0018, 0x0015)),
        get_str((0x0018, 0x1400)),
        get_str((0x0008, 0x1030)),
        get_str((0x0008, 0x103E)),
    ]

    for c in filter(None, candidates):
        normalized = c.upper()
        for keywords, part in BODY_PART_KEYWORDS:
            if any(k in normalized for k in keywords):
                return part

    return BodyPart.UNKNOWN


@x_ray_bp.route('/analyse_pic', methods=['POST'])
def analyse_pic():
    """AI preview: findings for an image without writing a report."""
    if 'file' not in request.files:
        return jsonify({"error": "No file provided"}), 400

    file = request.files['file']
    filename = secure_filename(file.filename or '')
    ext = os.path.splitext(filename)[1].lower()

    if ext not in PREVIEW_EXTENSIONS:
        return jsonify({"error": "Unsupported file type"}), 415

    findings = classify_file(
        file.read(),
        config=current_app.config['ANALYSIS_CONFIG'],
        reference_dir=current_app.config.get('REFERENCE_IMAGE_DIR'),
    )

    logger.info("Preview of %s: %s", filename, findings[0].label)
    return jsonify({"findings": [f.to_dict() for f in findings]})
