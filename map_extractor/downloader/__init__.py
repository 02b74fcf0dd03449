# map_extractor/downloader/__init__.py

from .fetcher import TileFetcher
from .grid_downloader import GridDownloader, GridMatrix
from .performance import PerformanceMonitor
from .progress import ProgressReporter, ProgressState, format_elapsed

__all__ = [
    'TileFetcher',
    'GridDownloader',
    'GridMatrix',
    'PerformanceMonitor',
    'ProgressReporter',
    'ProgressState',
    'format_elapsed',
]
