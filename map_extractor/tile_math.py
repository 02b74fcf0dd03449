# map_extractor/tile_math.py
import math
from typing import Tuple


class TileMath:
    """
    瓦片坐标计算工具类（Web Mercator / XYZ）
    """

    @staticmethod
    def latlon_to_tile(lat: float, lon: float, zoom: int) -> Tuple[int, int]:
        """
        经纬度 -> 包含该点的瓦片坐标 (x, y)
        """
        # 限制纬度避免溢出
        lat = max(min(lat, 85.0511), -85.0511)

        n = 2 ** zoom
        x_tile = (lon + 180.0) / 360.0 * n

        lat_rad = math.radians(lat)
        y_tile = (
            1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi
        ) / 2.0 * n

        x_tile = min(max(int(x_tile), 0), n - 1)
        y_tile = min(max(int(y_tile), 0), n - 1)
        return x_tile, y_tile

    @staticmethod
    def tile_to_latlon(x: int, y: int, zoom: int) -> Tuple[float, float]:
        """
        瓦片坐标 -> 瓦片左上角经纬度 (lat, lon)
        """
        n = 2 ** zoom
        lon = x / n * 360.0 - 180.0
        lat_rad = math.atan(math.sinh(math.pi * (1 - 2 * y / n)))
        lat = math.degrees(lat_rad)
        return lat, lon

    @staticmethod
    def get_grid_bbox(x0: int, y0: int, width: int, zoom: int) -> Tuple[float, float, float, float]:
        """
        获取以 (x0, y0) 为左上角、width × width 网格的地理范围 (west, south, east, north)
        """
        north, west = TileMath.tile_to_latlon(x0, y0, zoom)
        south, east = TileMath.tile_to_latlon(x0 + width, y0 + width, zoom)
        return west, south, east, north
