import logging
import os

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from database import MongoDB
from X_Ray_Analysis.config import AnalysisConfig
from X_Ray_Routes.classification import x_ray_bp
from X_Ray_Routes.stats_dashboard import stats_dash_bp
from X_Ray_Routes.x_ray_analyze import x_ray_data_bp

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)


def create_app(store=None, analysis_config=None):
    """
    Build the Flask app. `store` defaults to the MongoDB report store; tests
    pass their own object with the same methods.
    """
    app = Flask(__name__)
    CORS(app)

    app.config['UPLOAD_FOLDER'] = os.getenv("UPLOAD_FOLDER", "uploads/x_ray_images")
    app.config['REFERENCE_IMAGE_DIR'] = os.getenv(
        "REFERENCE_IMAGE_DIR",
        os.path.join(os.path.dirname(app.config['UPLOAD_FOLDER']) or ".", "reference_images"),
    )
    app.config['ANALYSIS_CONFIG'] = analysis_config or AnalysisConfig.from_env()

    if store is None:
        store = MongoDB()
    app.extensions['xray_store'] = store

    app.register_blueprint(x_ray_bp, url_prefix='/api')
    app.register_blueprint(x_ray_data_bp, url_prefix='/api')
    app.register_blueprint(stats_dash_bp, url_prefix='/api')

    @app.route('/health')
    def health():
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    create_app().run(debug=True, host="0.0.0.0", port=5555)
