# map_extractor/providers/__init__.py

from .base import TileProvider, TileProviderType
from .xyz import GoogleSatelliteProvider, OSMTileProvider
from .bing import BingTileProvider
from .custom import CustomTileProvider
from .manager import ProviderManager

__all__ = [
    'TileProvider',
    'TileProviderType',
    'GoogleSatelliteProvider',
    'OSMTileProvider',
    'BingTileProvider',
    'CustomTileProvider',
    'ProviderManager'
]
