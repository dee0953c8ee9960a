import logging
import os

from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from database import STATUS_COMPLETED, STATUS_REUPLOAD
from X_Ray_Analysis.models import BodyPart, DiagnosisRecord
from X_Ray_Analysis.pipeline import diagnose_file
from X_Ray_Routes.classification import extract_body_part

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'bmp', 'dcm', 'dicom'}

x_ray_data_bp = Blueprint('xray_data', __name__)


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def get_unique_filename(folder, filename):
    """
    Append a serial number to the filename if it already exists in the folder.
    """
    basename, extension = os.path.splitext(filename)
    new_filename = filename
    count = 1

    while os.path.exists(os.path.join(folder, new_filename)):
        new_filename = f"{basename}_{count}{extension}"
        count += 1

    return new_filename


def save_upload(file):
    folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(folder, exist_ok=True)
    filename = get_unique_filename(folder, secure_filename(file.filename))
    file_path = os.path.join(folder, filename)
    file.save(file_path)
    return filename, file_path


def resolve_body_part(raw, file_path=None):
    """Declared body part from the form, falling back to the DICOM header."""
    if raw:
        declared = BodyPart.parse(raw)
        if declared == BodyPart.UNKNOWN:
            raise ValueError("body_part must be Chest, Hand or Leg")
        return declared
    if file_path and file_path.lower().endswith(('.dcm', '.dicom')):
        hinted = extract_body_part(file_path)
        if hinted != BodyPart.UNKNOWN:
            logger.info("Body part taken from DICOM header: %s", hinted.value)
            return hinted
    raise ValueError("body_part is required")


@x_ray_data_bp.route('/x_ray_analyze', methods=['POST'])
def analyze_xray():
    if 'file' not in request.files:
        return jsonify({'error': 'No file part'}), 400

    file = request.files['file']
    if file.filename == '':
        return jsonify({'error': 'No selected file'}), 400

    if not allowed_file(file.filename):
        return jsonify({'error': 'File not allowed'}), 415

    raw_body_part = request.form.get('body_part')
    if raw_body_part:
        try:
            resolve_body_part(raw_body_part)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

    filename, file_path = save_upload(file)

    try:
        declared = resolve_body_part(raw_body_part, file_path)
    except ValueError as e:
        # Only the DICOM header fallback gets here; drop the unusable upload
        os.remove(file_path)
        return jsonify({'error': str(e)}), 400

    store = current_app.extensions['xray_store']
    scan_id = store.insert_scan(f'/uploads/{filename}', declared.value, request.form.get('patient_id'))

    outcome = diagnose_file(
        file_path,
        declared,
        config=current_app.config['ANALYSIS_CONFIG'],
        reference_dir=current_app.config.get('REFERENCE_IMAGE_DIR'),
        scan_id=scan_id,
    )

    body = {'imageUrl': f'/uploads/{filename}', 'scan_id': scan_id, 'analysis': outcome.to_dict()}

    if not isinstance(outcome, DiagnosisRecord):
        # Mismatch or quality rejection: no report is written, a new image is needed
        store.mark_scan_status(scan_id, STATUS_REUPLOAD)
        return jsonify(body), 422

    body['report_id'] = store.save_report(outcome)
    store.mark_scan_status(scan_id, STATUS_COMPLETED)
    return jsonify(body), 201


@x_ray_data_bp.route('/reports', methods=['GET'])
def list_reports():
    store = current_app.extensions['xray_store']
    return jsonify({'reports': store.list_reports()}), 200
