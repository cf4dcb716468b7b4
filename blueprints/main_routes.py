from datetime import datetime, timezone

from flask import Blueprint, jsonify

from storage import get_services
from utils.logging_utils import app_logger, log_error

main_bp = Blueprint('main_bp', __name__)


@main_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    database = 'ok'
    try:
        get_services().db.fetch_one('SELECT 1')
    except Exception as e:
        log_error(app_logger, "Health check database probe failed", error=str(e))
        database = 'unavailable'
    return jsonify({
        'status': 'healthy' if database == 'ok' else 'degraded',
        'database': database,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'version': '1.0.0'
    }), 200 if database == 'ok' else 503
