#!/usr/bin/env python3
"""
Character Sheet Render Service - Backend Server

Fills the character sheet template with values posted by the frontend and
returns the result as a PDF or PNG download.

Usage:
    python app.py
    Then POST {"format": "pdf", "values": {...}} to http://localhost:5000/api/render
"""

import logging
from typing import Optional

from flask import Flask, Response, current_app, jsonify, request

from field_map import coerce_values
from sheet_renderer import BASE_DIR, RenderConfig, get_renderer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'POST, OPTIONS',
}

RENDER_METHODS = ['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']

# =============================================================================
# FLASK APP
# =============================================================================

def create_app(config: Optional[RenderConfig] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Asset locations; defaults to the assets shipped next to this file
    """
    app = Flask(__name__)
    app.config['RENDER_CONFIG'] = config or RenderConfig.from_root(BASE_DIR)

    app.add_url_rule(
        '/api/render', 'render', api_render,
        methods=RENDER_METHODS, provide_automatic_options=False
    )
    # Methods outside RENDER_METHODS are rejected by routing before the view runs
    app.register_error_handler(405, method_not_allowed)
    return app


def method_not_allowed(error):
    return _with_cors(jsonify({'error': 'Use POST /api/render'})), 405


# =============================================================================
# ROUTES
# =============================================================================

def api_render():
    """Render the character sheet from the posted values."""
    if request.method == 'OPTIONS':
        return _with_cors(Response(status=204))

    if request.method != 'POST':
        return _with_cors(jsonify({'error': 'Use POST /api/render'})), 405

    # Unparseable bodies render an empty sheet
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        body = {}

    values = coerce_values(body)
    field_map = body.get('fieldMap') if isinstance(body.get('fieldMap'), dict) else None

    try:
        renderer = get_renderer(body.get('format') or 'pdf', current_app.config['RENDER_CONFIG'])
        output = renderer.render(values, field_map)
    except Exception as e:
        logger.exception(f"Error rendering character sheet: {e}")
        return _with_cors(jsonify({'error': 'Render failed', 'details': str(e)})), 500

    response = Response(output, status=200, mimetype=renderer.MIMETYPE)
    response.headers['Content-Disposition'] = f'attachment; filename="{renderer.filename}"'
    return _with_cors(response)


def _with_cors(response: Response) -> Response:
    response.headers.update(CORS_HEADERS)
    return response


app = create_app()

# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    render_config = app.config['RENDER_CONFIG']
    logger.info("=" * 60)
    logger.info("Character Sheet Render Service")
    logger.info("=" * 60)
    logger.info(f"PDF template: {render_config.template_pdf}")
    logger.info(f"PNG template: {render_config.template_png}")
    logger.info(f"Field map: {render_config.field_map_path}")
    logger.info(f"Starting server on http://localhost:5000")
    logger.info("=" * 60)

    app.run(host='0.0.0.0', port=5000, debug=True)
