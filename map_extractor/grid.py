# map_extractor/grid.py

from dataclasses import dataclass
from typing import Iterator, List, Tuple

from loguru import logger

from .config import MAX_GRID_WIDTH
from .errors import InvalidDimension


@dataclass(frozen=True)
class TileCoordinate:
    """
    瓦片坐标 (x, y)，以及它所属的缩放级别
    """
    x: int
    y: int
    zoom: int

    def __str__(self) -> str:
        return f"(x={self.x}, y={self.y}, z={self.zoom})"


CoordinateGrid = List[List[TileCoordinate]]


def clamp_width(width: int) -> int:
    """
    限制网格宽度：超过上限时截断为上限并记录警告，非正数直接拒绝

    Args:
        width: 请求的网格宽度

    Returns:
        int: 可用的网格宽度

    Raises:
        InvalidDimension: 宽度不是正整数
    """
    if isinstance(width, bool) or not isinstance(width, int):
        raise InvalidDimension(width, "宽度必须是整数")
    if width <= 0:
        raise InvalidDimension(width, "宽度必须大于0")
    if width > MAX_GRID_WIDTH:
        logger.warning(
            f"网格宽度 {width} 超过上限 {MAX_GRID_WIDTH}，合成图尺寸可能超出栅格限制，已截断为 {MAX_GRID_WIDTH}"
        )
        return MAX_GRID_WIDTH
    return width


class GridEnumerator:
    """
    将起点坐标和网格宽度展开为有序的瓦片坐标网格
    """

    @staticmethod
    def enumerate(x0: int, y0: int, width: int, zoom: int) -> CoordinateGrid:
        """
        生成 width × width 的坐标网格，grid[row][col] = (x0 + col, y0 + row)

        Args:
            x0: 起点瓦片x坐标（左上角）
            y0: 起点瓦片y坐标（左上角）
            width: 网格宽度（每行/列的瓦片数）
            zoom: 缩放级别，整个网格保持一致

        Returns:
            CoordinateGrid: 按 [row][col] 索引的坐标网格

        Raises:
            InvalidDimension: 宽度不在 1..MAX_GRID_WIDTH 范围内
        """
        if isinstance(width, bool) or not isinstance(width, int):
            raise InvalidDimension(width, "宽度必须是整数")
        if width <= 0:
            raise InvalidDimension(width, "宽度必须大于0")
        if width > MAX_GRID_WIDTH:
            raise InvalidDimension(width, f"宽度不能超过 {MAX_GRID_WIDTH}")

        return [
            [TileCoordinate(x0 + col, y0 + row, zoom) for col in range(width)]
            for row in range(width)
        ]

    @staticmethod
    def iter_cells(grid: CoordinateGrid) -> Iterator[Tuple[int, int, TileCoordinate]]:
        """
        按行优先顺序遍历网格，产出 (row, col, coordinate)
        """
        for row, row_coords in enumerate(grid):
            for col, coord in enumerate(row_coords):
                yield row, col, coord

    @staticmethod
    def count(grid: CoordinateGrid) -> int:
        return sum(len(row_coords) for row_coords in grid)
