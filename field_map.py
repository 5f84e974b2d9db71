"""
Field Map Loading and Text Layout

Field maps describe where each named value is drawn on the character sheet.
They are authored once in top-left coordinates and shared by every output
format; the conversion to each surface's own coordinate system happens in
resolve_position().

Example FIELD_MAP.json entry:

    "name": {"x": 100, "y": 50, "size": 12, "align": "left", "baselineAdjust": 0}
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_FONT_SIZE = 10
DEFAULT_ALIGNMENT = 'left'
ALIGNMENTS = ('left', 'center', 'right')

# Surface origin conventions
ORIGIN_TOP_LEFT = 'top-left'
ORIGIN_BOTTOM_LEFT = 'bottom-left'


class FieldMapError(ValueError):
    """Raised when a field map cannot be read or contains an unusable entry."""


# =============================================================================
# FIELD DIRECTIVES
# =============================================================================

@dataclass(frozen=True)
class FieldDirective:
    """Placement of one named value on the template."""

    name: str
    x: float
    y: float
    size: float = DEFAULT_FONT_SIZE
    align: str = DEFAULT_ALIGNMENT
    baseline_adjust: float = 0

    @classmethod
    def from_config(cls, name: str, conf: Union['FieldDirective', Mapping[str, Any]]) -> 'FieldDirective':
        """
        Build a directive from a field map entry.

        Missing or zero size and baselineAdjust fall back to their defaults,
        matching how the field map files have always been authored.
        """
        if isinstance(conf, FieldDirective):
            return conf
        if not isinstance(conf, Mapping):
            raise FieldMapError(f"Field '{name}' must be an object, got {type(conf).__name__}")

        align = conf.get('align') or DEFAULT_ALIGNMENT
        return cls(
            name=name,
            x=_numeric(name, conf, 'x'),
            y=_numeric(name, conf, 'y'),
            size=_numeric(name, conf, 'size', DEFAULT_FONT_SIZE),
            align=align if align in ALIGNMENTS else DEFAULT_ALIGNMENT,
            baseline_adjust=_numeric(name, conf, 'baselineAdjust', 0),
        )


def _numeric(name: str, conf: Mapping[str, Any], key: str, default: Optional[float] = None) -> float:
    """Read a numeric entry key; falsy optional keys take their default."""
    value = conf.get(key)
    if default is not None and not value:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise FieldMapError(f"Field '{name}' needs a numeric '{key}', got {value!r}")
    return value


FieldMap = Mapping[str, Union[FieldDirective, Mapping[str, Any]]]


def load_field_map(path: Union[str, Path], override: Optional[FieldMap] = None) -> FieldMap:
    """
    Load the field map for a single render.

    Args:
        path: Location of the FIELD_MAP.json file
        override: Field map supplied by the caller; returned as-is when given

    Returns:
        Mapping of field name to its (raw) layout entry
    """
    if override is not None:
        return override

    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            field_map = json.load(f)
    except OSError as e:
        raise FieldMapError(f"Could not read field map {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise FieldMapError(f"Malformed field map {path}: {e}") from e

    if not isinstance(field_map, dict):
        raise FieldMapError(f"Field map {path} must be a JSON object")

    logger.debug(f"Loaded {len(field_map)} fields from {path}")
    return field_map


# =============================================================================
# VALUES
# =============================================================================

def format_value(value: Any) -> Optional[str]:
    """
    Convert a submitted value to the text drawn on the sheet.

    Returns None for values that should leave the field blank (None and the
    empty string). Zero and False are real values and are drawn.
    """
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return str(value)
    return str(value)


def coerce_values(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Pull the field values out of a render request payload."""
    values = payload.get('values')
    if not isinstance(values, dict):
        return {}
    return values


def iter_field_values(
    values: Mapping[str, Any],
    field_map: FieldMap
) -> Iterator[Tuple[str, str, FieldDirective]]:
    """Yield (name, text, directive) for every mapped field that has a value."""
    for name, conf in field_map.items():
        text = format_value(values.get(name))
        if text is None:
            continue
        yield name, text, FieldDirective.from_config(name, conf)


# =============================================================================
# LAYOUT
# =============================================================================

def resolve_position(
    directive: FieldDirective,
    measured_width: float,
    origin: str,
    surface_height: Optional[float] = None
) -> Tuple[float, float]:
    """
    Compute the drawing origin for a field on a given surface.

    Args:
        directive: Field placement in top-left coordinates
        measured_width: Width of the text at the directive's size
        origin: ORIGIN_TOP_LEFT or ORIGIN_BOTTOM_LEFT
        surface_height: Page height, required for bottom-left surfaces

    Returns:
        (x, y) in the surface's own coordinate system
    """
    x = directive.x
    if directive.align == 'center':
        x = directive.x - measured_width / 2
    elif directive.align == 'right':
        x = directive.x - measured_width

    if origin == ORIGIN_TOP_LEFT:
        y = directive.y + directive.baseline_adjust
    elif origin == ORIGIN_BOTTOM_LEFT:
        if surface_height is None:
            raise ValueError("surface_height is required for bottom-left surfaces")
        y = surface_height - directive.y - directive.baseline_adjust
    else:
        raise ValueError(f"Unknown surface origin: {origin}")

    return x, y

