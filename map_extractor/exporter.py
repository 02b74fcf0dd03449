# map_extractor/exporter.py

from pathlib import Path
from typing import Union

from loguru import logger
from PIL import Image

from .errors import ExportError
from .utils import ensure_directory, get_file_size


class ImageExporter:
    """
    将合成图写出为图片文件，格式由扩展名决定（默认 PNG）
    """

    def export(self, raster: Image.Image, output_path: Union[str, Path]) -> Path:
        """
        保存合成图

        Args:
            raster: 合成图
            output_path: 输出文件路径

        Returns:
            Path: 实际写出的文件路径

        Raises:
            ExportError: 目录无法创建或写入失败
        """
        output_path = Path(output_path)
        output_format = output_path.suffix.lstrip('.').lower() or 'png'

        try:
            ensure_directory(output_path.parent)
            # 转换为jpg或jpeg时需要确保是RGB模式
            if output_format in ['jpg', 'jpeg']:
                if raster.mode in ['RGBA', 'LA', 'P']:
                    raster = raster.convert('RGB')
                raster.save(output_path, format='JPEG')
            else:
                raster.save(output_path, format=output_format.upper())
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"导出图片失败: {output_path}: {e}")
            raise ExportError(output_path, e, raster=raster) from e

        size_mb = get_file_size(output_path) / 1024 / 1024
        logger.info(f"图片已导出: {output_path} ({raster.width}x{raster.height}, {size_mb:.2f} MB)")
        return output_path
