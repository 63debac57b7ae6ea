from .config import AnalyticsConfig
from .heatmap import HeatmapCell, attempts_matrix, build_heatmap, color_bucket, heatmap_frame
from .summary import GroupPerformance, PerformanceSummary, note_performance, performance_summary, shape_performance

__all__ = [
    "AnalyticsConfig",
    "HeatmapCell",
    "build_heatmap",
    "color_bucket",
    "heatmap_frame",
    "attempts_matrix",
    "GroupPerformance",
    "PerformanceSummary",
    "shape_performance",
    "note_performance",
    "performance_summary",
]
