# map_extractor/compositor.py

from loguru import logger
from PIL import Image

from .errors import CompositionPrecondition


class Compositor:
    """
    将完整的瓦片矩阵拼接为一张合成图

    matrix[row][col] 贴到像素偏移 (col * T, row * T)：列对应水平方向，行对应垂直方向
    """

    @staticmethod
    def check_matrix(matrix) -> tuple:
        """
        检查矩阵是否为非空方阵、每个单元格都是同尺寸同模式的正方形瓦片

        Returns:
            tuple: (width, tile_size, mode)

        Raises:
            CompositionPrecondition: 矩阵不完整或瓦片不一致
        """
        width = len(matrix)
        if width == 0:
            raise CompositionPrecondition("瓦片矩阵为空")

        first = matrix[0][0] if matrix[0] else None
        if not isinstance(first, Image.Image):
            raise CompositionPrecondition("单元格 [0][0] 缺少瓦片")
        tile_size, tile_height = first.size
        if tile_size != tile_height:
            raise CompositionPrecondition(f"瓦片不是正方形: {first.size}")
        mode = first.mode

        for row, row_tiles in enumerate(matrix):
            if len(row_tiles) != width:
                raise CompositionPrecondition(f"第 {row} 行有 {len(row_tiles)} 个瓦片，应为 {width}")
            for col, tile in enumerate(row_tiles):
                if not isinstance(tile, Image.Image):
                    raise CompositionPrecondition(f"单元格 [{row}][{col}] 缺少瓦片")
                if tile.size != (tile_size, tile_size):
                    raise CompositionPrecondition(
                        f"单元格 [{row}][{col}] 尺寸 {tile.size} 与 {(tile_size, tile_size)} 不一致"
                    )
                if tile.mode != mode:
                    raise CompositionPrecondition(f"单元格 [{row}][{col}] 模式 {tile.mode} 与 {mode} 不一致")
        return width, tile_size, mode

    @classmethod
    def compose(cls, matrix) -> Image.Image:
        """
        拼接瓦片矩阵

        Args:
            matrix: width × width 的瓦片矩阵，按 [row][col] 索引

        Returns:
            Image.Image: 边长为 width * tile_size 的合成图
        """
        width, tile_size, mode = cls.check_matrix(matrix)
        edge = width * tile_size
        logger.info(f"开始合成: {width}x{width} 个瓦片 -> {edge}x{edge} 像素")

        canvas = Image.new(mode, (edge, edge))
        for row in range(width):
            top = row * tile_size
            for col in range(width):
                left = col * tile_size
                canvas.paste(matrix[row][col], (left, top))

        return canvas
