"""Shared fixtures: a throwaway template set and a Flask test client."""

import json

import pytest
from PIL import Image
from reportlab.pdfgen import canvas

from app import create_app
from sheet_renderer import RenderConfig

PAGE_SIZE = (612, 792)
SHEET_SIZE = (400, 300)

FIELDS = {
    'name': {'x': 100, 'y': 50, 'size': 20, 'align': 'left'},
    'title': {'x': 200, 'y': 120, 'size': 16, 'align': 'center'},
    'gold': {'x': 380, 'y': 200, 'size': 12, 'align': 'right', 'baselineAdjust': 3},
}


@pytest.fixture
def assets(tmp_path):
    """Write a template PDF, a template PNG and a field map under tmp_path."""
    templates = tmp_path / 'templates'
    templates.mkdir()

    c = canvas.Canvas(str(templates / 'template.pdf'), pagesize=PAGE_SIZE)
    c.line(50, 700, 560, 700)
    c.showPage()
    c.save()

    Image.new('RGB', SHEET_SIZE, 'white').save(templates / 'sheet.png')

    (tmp_path / 'FIELD_MAP.json').write_text(json.dumps(FIELDS))
    return tmp_path


@pytest.fixture
def config(assets):
    return RenderConfig.from_root(assets)


@pytest.fixture
def client(config):
    app = create_app(config)
    app.config['TESTING'] = True
    return app.test_client()
