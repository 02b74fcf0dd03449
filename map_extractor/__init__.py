# map_extractor/__init__.py
"""
地图瓦片网格提取工具

给定起点瓦片坐标、缩放级别和网格宽度，下载 width × width 个瓦片并拼接为一张合成图。
"""

from .compositor import Compositor
from .config import ExtractorConfig, MAX_GRID_WIDTH, TILE_SIZE
from .errors import (
    CompositionPrecondition,
    ConfigError,
    ExportError,
    ExtractionCancelled,
    ExtractorError,
    InvalidDimension,
    TileFetchError,
)
from .exporter import ImageExporter
from .extractor import ExtractionResult, ExtractionState, MapExtractor
from .grid import GridEnumerator, TileCoordinate

__all__ = [
    'Compositor',
    'ExtractorConfig',
    'MAX_GRID_WIDTH',
    'TILE_SIZE',
    'CompositionPrecondition',
    'ConfigError',
    'ExportError',
    'ExtractionCancelled',
    'ExtractorError',
    'InvalidDimension',
    'TileFetchError',
    'ImageExporter',
    'ExtractionResult',
    'ExtractionState',
    'MapExtractor',
    'GridEnumerator',
    'TileCoordinate',
]
__version__ = '1.0'
