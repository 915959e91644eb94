"""
SoupHeatMap Visualization - Geometry and colors for the renderer.

This module contains:
- radar: Per-map coordinate transformation and map images
- density: Kernel density estimation and contour bands
- colors: Color scales, derived theme and legend
- heatmaps: Heatmap, point and no-data view assembly
"""

__all__: list[str] = []
