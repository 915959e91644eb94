"""
Radar Map Module for Valorant Match Visualization

Provides:
- Per-map transform constants and display images (valorant-api.com catalog)
- Coordinate transformation from game units to normalized map space
- Viewport scaling for rendering

Map coordinate systems:
- Kill locations are raw game-world units
- The map catalog defines an affine map into [0, 1] image space
- Axes are swapped relative to the naive reading:
    normalized_x = game_y * x_multiplier + x_scalar_to_add
    normalized_y = game_x * y_multiplier + y_scalar_to_add
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from soupheatmap.core.constants import DEFAULT_MAP, INVALID_COORDINATES, VIEWPORT_SIZE
from soupheatmap.core.utils import clamp

logger = logging.getLogger(__name__)

# ============================================================================
# MAP METADATA - Coordinate transformation parameters
# Exact values from https://valorant-api.com/v1/maps
# Adding a map only needs a new row here.
# ============================================================================

_ICON_URL = "https://media.valorant-api.com/maps/{uuid}/displayicon.png"

MAP_TRANSFORMS = {
    "Abyss": {
        "uuid": "224b0a95-48b9-f703-1bd8-67aca101a61f",
        "x_multiplier": 0.000081,
        "y_multiplier": -0.000081,
        "x_scalar_to_add": 0.5,
        "y_scalar_to_add": 0.5,
    },
    "Ascent": {
        "uuid": "7eaecc1b-4337-bbf6-6ab9-04b8f06b3319",
        "x_multiplier": 0.00007,
        "y_multiplier": -0.00007,
        "x_scalar_to_add": 0.813895,
        "y_scalar_to_add": 0.573242,
    },
    "Bind": {
        "uuid": "2c9d57ec-4431-9c5e-2939-8f9ef6dd5cba",
        "x_multiplier": 0.000059,
        "y_multiplier": -0.000059,
        "x_scalar_to_add": 0.576941,
        "y_scalar_to_add": 0.967566,
    },
    "Breeze": {
        "uuid": "2fb9a4fd-47b8-4e7d-a969-74b4046ebd53",
        "x_multiplier": 0.00007,
        "y_multiplier": -0.00007,
        "x_scalar_to_add": 0.465123,
        "y_scalar_to_add": 0.833078,
    },
    "Corrode": {
        "uuid": "1c18ab1f-420d-0d8b-71d0-77ad3c439115",
        "x_multiplier": 0.00007,
        "y_multiplier": -0.00007,
        "x_scalar_to_add": 0.526158,
        "y_scalar_to_add": 0.5,
    },
    "Fracture": {
        "uuid": "b529448b-4d60-346e-e89e-00a4c527a405",
        "x_multiplier": 0.000078,
        "y_multiplier": -0.000078,
        "x_scalar_to_add": 0.556952,
        "y_scalar_to_add": 1.155886,
    },
    "Haven": {
        "uuid": "2bee0dc9-4ffe-519b-1cbd-7fbe763a6047",
        "x_multiplier": 0.000075,
        "y_multiplier": -0.000075,
        "x_scalar_to_add": 1.09345,
        "y_scalar_to_add": 0.642728,
    },
    "Icebox": {
        "uuid": "e2ad5c54-4114-a870-9641-8ea21279579a",
        "x_multiplier": 0.000072,
        "y_multiplier": -0.000072,
        "x_scalar_to_add": 0.460214,
        "y_scalar_to_add": 0.304687,
    },
    "Lotus": {
        # The live catalog lists Lotus under this uuid; it is only used for the image
        "uuid": "2fe4ed3a-450a-948b-6d6b-e89a78e680a9",
        "x_multiplier": 0.000072,
        "y_multiplier": -0.000072,
        "x_scalar_to_add": 0.454789,
        "y_scalar_to_add": 0.917752,
    },
    "Pearl": {
        "uuid": "fd267378-4d1d-484f-ff52-77821ed10dc2",
        "x_multiplier": 0.000078,
        "y_multiplier": -0.000078,
        "x_scalar_to_add": 0.480469,
        "y_scalar_to_add": 0.916016,
    },
    "Split": {
        "uuid": "d960549e-485c-e861-8d71-aa9d1aed12a2",
        "x_multiplier": 0.000078,
        "y_multiplier": -0.000078,
        "x_scalar_to_add": 0.842188,
        "y_scalar_to_add": 0.697578,
    },
    "Sunset": {
        "uuid": "92584fbe-486a-b1b2-9faa-39b0f486b498",
        "x_multiplier": 0.000078,
        "y_multiplier": -0.000078,
        "x_scalar_to_add": 0.5,
        "y_scalar_to_add": 0.515625,
    },
    "Triad": {
        "uuid": "9c91a445-4f78-1baa-a3ea-8f8aadf4914d",
        "x_multiplier": 0.000063,
        "y_multiplier": -0.000063,
        "x_scalar_to_add": 0.5,
        "y_scalar_to_add": 0.5,
    },
}

# Unknown map names are reported once each, then only at DEBUG
_reported_unknown_maps: set[str] = set()


def _report_unknown_map(map_name: str, fallback: str) -> None:
    if map_name in _reported_unknown_maps:
        logger.debug(f"Unknown map: {map_name}, {fallback}")
        return
    _reported_unknown_maps.add(map_name)
    logger.warning(
        f"Unknown map: {map_name}, {fallback}. Available maps: {', '.join(MAP_TRANSFORMS)}"
    )


@dataclass(frozen=True)
class MapTransform:
    """Affine transform and image of one map."""

    name: str
    uuid: str
    x_multiplier: float
    y_multiplier: float
    x_scalar_to_add: float
    y_scalar_to_add: float

    @property
    def display_icon(self) -> str:
        return _ICON_URL.format(uuid=self.uuid)

    def apply(self, x: float, y: float) -> tuple[float, float]:
        """Map raw (x, y) into clamped [0, 1] space. No sentinel handling."""
        normalized_x = y * self.x_multiplier + self.x_scalar_to_add
        normalized_y = x * self.y_multiplier + self.y_scalar_to_add
        return clamp(normalized_x), clamp(normalized_y)


def get_map_transform(map_name: str) -> MapTransform | None:
    """Get the transform row for a map, or None if the map is unknown."""
    data = MAP_TRANSFORMS.get(map_name)
    if data is None:
        return None
    return MapTransform(name=map_name, **data)


def is_valid_position(x: float, y: float) -> bool:
    """False when either axis holds a "no position" sentinel."""
    return x not in INVALID_COORDINATES and y not in INVALID_COORDINATES


def transform_coordinates(x: float, y: float, map_name: str) -> tuple[float, float] | None:
    """
    Transform game coordinates to normalized [0, 1] space.

    Args:
        x: Raw game X
        y: Raw game Y
        map_name: Map display name (e.g. "Ascent")

    Returns:
        (normalized_x, normalized_y), or None for sentinel positions and
        unknown maps
    """
    if not is_valid_position(x, y):
        return None

    transform = get_map_transform(map_name)
    if transform is None:
        _report_unknown_map(map_name, "no coordinates produced")
        return None

    return transform.apply(x, y)


def get_map_image_url(map_name: str) -> str:
    """Get the display image for a map, falling back to the default map."""
    transform = get_map_transform(map_name)
    if transform is None:
        _report_unknown_map(map_name, f"using {DEFAULT_MAP} image")
        transform = get_map_transform(DEFAULT_MAP)
    return transform.display_icon


def list_available_maps() -> list[str]:
    """List all maps with a known transform."""
    return list(MAP_TRANSFORMS.keys())


@dataclass
class RadarPosition:
    """A position in viewport pixels."""

    x: float  # Pixel X (0 = left)
    y: float  # Pixel Y (0 = top)

    def to_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


class CoordinateTransformer:
    """
    Transforms game coordinates to viewport pixel coordinates for one map.

    Unknown maps are not an error: every transform returns None and a
    warning is logged once.
    """

    def __init__(self, map_name: str, viewport_size: int = VIEWPORT_SIZE):
        """
        Initialize transformer for a specific map.

        Args:
            map_name: Map display name (e.g. "Ascent")
            viewport_size: Edge of the square rendering viewport in pixels
        """
        self.map_name = map_name
        self.viewport_size = viewport_size
        self.transform = get_map_transform(map_name)

        if self.transform is None:
            _report_unknown_map(map_name, "no coordinates produced")

    @property
    def is_known_map(self) -> bool:
        return self.transform is not None

    @property
    def image_url(self) -> str:
        return get_map_image_url(self.map_name)

    def to_normalized(self, x: float, y: float) -> tuple[float, float] | None:
        """Game coordinates to [0, 1] space, or None."""
        if self.transform is None or not is_valid_position(x, y):
            return None
        return self.transform.apply(x, y)

    def game_to_radar(self, x: float, y: float) -> RadarPosition | None:
        """Game coordinates to viewport pixels, or None."""
        normalized = self.to_normalized(x, y)
        if normalized is None:
            return None
        return RadarPosition(
            x=normalized[0] * self.viewport_size,
            y=normalized[1] * self.viewport_size,
        )
