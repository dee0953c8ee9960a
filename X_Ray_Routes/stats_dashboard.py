from flask import Blueprint, current_app, jsonify

stats_dash_bp = Blueprint('stats_dash', __name__)


@stats_dash_bp.route('/stats_dashboard', methods=['GET'])
def stats_dash():
    store = current_app.extensions['xray_store']
    return jsonify({"results": store.report_stats()})
