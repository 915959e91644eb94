"""
SoupHeatMap - Valorant kill/death heatmaps

Turns recorded elimination events into spatial density maps and point
renderings, with player/weapon/round/time filters and multi-match
aggregation per map.

Usage:
    from soupheatmap import HeatmapSession, InMemoryMatchRepository

    session = HeatmapSession(InMemoryMatchRepository({"matches": details}), "matches")
    session.load_matches()
    session.select_match(session.summaries[0].match_id)
    view = session.render()
"""

__version__ = "0.1.0"
__author__ = "SoupHeatMap Contributors"


def __getattr__(name):
    """Lazy import for heavy dependencies."""
    # Pipeline
    if name == "HeatmapSession":
        from soupheatmap.session import HeatmapSession
        return HeatmapSession
    elif name == "InMemoryMatchRepository":
        from soupheatmap.repository import InMemoryMatchRepository
        return InMemoryMatchRepository
    elif name == "RepositoryError":
        from soupheatmap.repository import RepositoryError
        return RepositoryError
    elif name == "transform_coordinates":
        from soupheatmap.visualization.radar import transform_coordinates
        return transform_coordinates
    elif name == "filter_events":
        from soupheatmap.analysis.filters import filter_events
        return filter_events
    elif name == "aggregate_matches":
        from soupheatmap.analysis.aggregate import aggregate_matches
        return aggregate_matches
    elif name == "estimate_density":
        from soupheatmap.visualization.density import estimate_density
        return estimate_density
    elif name == "DensityEstimator":
        from soupheatmap.visualization.density import DensityEstimator
        return DensityEstimator
    elif name == "color_for":
        from soupheatmap.visualization.colors import color_for
        return color_for
    raise AttributeError(f"module 'soupheatmap' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Pipeline
    "HeatmapSession",
    "InMemoryMatchRepository",
    "RepositoryError",
    "transform_coordinates",
    "filter_events",
    "aggregate_matches",
    "estimate_density",
    "DensityEstimator",
    "color_for",
]
