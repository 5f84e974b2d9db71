"""Tests for field map loading, value formatting and layout resolution."""

import pytest

from field_map import (
    ORIGIN_BOTTOM_LEFT,
    ORIGIN_TOP_LEFT,
    FieldDirective,
    FieldMapError,
    coerce_values,
    format_value,
    iter_field_values,
    load_field_map,
    resolve_position,
)


class TestLoadFieldMap:

    def test_reads_file(self, config):
        field_map = load_field_map(config.field_map_path)
        assert set(field_map) == {'name', 'title', 'gold'}
        assert field_map['name']['x'] == 100

    def test_override_returned_unchanged(self, tmp_path):
        override = {'name': {'x': 1, 'y': 2}}
        # Path does not exist; the override must short-circuit the read
        assert load_field_map(tmp_path / 'missing.json', override) is override

    def test_missing_file(self, tmp_path):
        with pytest.raises(FieldMapError, match='missing.json'):
            load_field_map(tmp_path / 'missing.json')

    def test_malformed_file(self, tmp_path):
        path = tmp_path / 'FIELD_MAP.json'
        path.write_text('{"name": {"x": 1,')
        with pytest.raises(FieldMapError, match='Malformed'):
            load_field_map(path)

    def test_non_object_file(self, tmp_path):
        path = tmp_path / 'FIELD_MAP.json'
        path.write_text('[1, 2, 3]')
        with pytest.raises(FieldMapError):
            load_field_map(path)


class TestFieldDirective:

    def test_defaults(self):
        directive = FieldDirective.from_config('name', {'x': 10, 'y': 20})
        assert directive.size == 10
        assert directive.align == 'left'
        assert directive.baseline_adjust == 0

    def test_reads_all_keys(self):
        directive = FieldDirective.from_config(
            'gold', {'x': 10, 'y': 20, 'size': 14, 'align': 'right', 'baselineAdjust': -2}
        )
        assert directive == FieldDirective('gold', 10, 20, 14, 'right', -2)

    def test_zero_size_uses_default(self):
        assert FieldDirective.from_config('a', {'x': 0, 'y': 0, 'size': 0}).size == 10

    def test_unknown_alignment_is_left(self):
        assert FieldDirective.from_config('a', {'x': 0, 'y': 0, 'align': 'justify'}).align == 'left'

    @pytest.mark.parametrize('conf', [
        {'y': 1},
        {'x': 'ten', 'y': 1},
        {'x': 1, 'y': None},
        {'x': 1, 'y': 1, 'size': '12'},
        {'x': 1, 'y': 1, 'baselineAdjust': 'low'},
        {'x': float('nan'), 'y': 1},
        'oops',
    ])
    def test_rejects_unusable_entries(self, conf):
        with pytest.raises(FieldMapError):
            FieldDirective.from_config('a', conf)


class TestFormatValue:

    @pytest.mark.parametrize('value', [None, '', float('nan'), float('inf'), float('-inf')])
    def test_blank_values_skipped(self, value):
        assert format_value(value) is None

    @pytest.mark.parametrize('value, expected', [
        ('Alyx', 'Alyx'),
        (0, '0'),
        (12, '12'),
        (2.0, '2'),
        (2.5, '2.5'),
        (1e20, '100000000000000000000'),
        (1e21, '1e+21'),
        (-1e21, '-1e+21'),
        (False, 'false'),
        (True, 'true'),
    ])
    def test_rendered_text(self, value, expected):
        assert format_value(value) == expected

    def test_iter_field_values_skips_blank_and_unmapped(self):
        field_map = {
            'name': {'x': 1, 'y': 1},
            'title': {'x': 2, 'y': 2},
            'level': {'x': 3, 'y': 3},
        }
        values = {'name': 'Alyx', 'title': '', 'level': 0, 'extra': 'ignored'}
        rendered = [(name, text) for name, text, _ in iter_field_values(values, field_map)]
        assert rendered == [('name', 'Alyx'), ('level', '0')]

    def test_coerce_values(self):
        assert coerce_values({'values': {'name': 'Alyx'}}) == {'name': 'Alyx'}
        assert coerce_values({}) == {}
        assert coerce_values({'values': ['Alyx']}) == {}


class TestResolvePosition:

    @pytest.mark.parametrize('align, expected_x', [
        ('left', 100),
        ('center', 75),
        ('right', 50),
    ])
    def test_horizontal_alignment(self, align, expected_x):
        directive = FieldDirective('f', 100, 40, align=align)
        x, _ = resolve_position(directive, 50, ORIGIN_TOP_LEFT)
        assert x == expected_x

    def test_top_left_surface(self):
        directive = FieldDirective('f', 100, 40, baseline_adjust=3)
        assert resolve_position(directive, 0, ORIGIN_TOP_LEFT) == (100, 43)

    def test_bottom_left_surface(self):
        directive = FieldDirective('f', 100, 40, baseline_adjust=3)
        assert resolve_position(directive, 0, ORIGIN_BOTTOM_LEFT, 792) == (100, 749)

    def test_bottom_left_requires_height(self):
        with pytest.raises(ValueError):
            resolve_position(FieldDirective('f', 1, 1), 0, ORIGIN_BOTTOM_LEFT)

    def test_unknown_origin(self):
        with pytest.raises(ValueError):
            resolve_position(FieldDirective('f', 1, 1), 0, 'middle')
