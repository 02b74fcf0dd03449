# map_extractor/errors.py

from typing import Optional


class ExtractorError(Exception):
    """
    地图提取过程中所有错误的基类
    """


class ConfigError(ExtractorError):
    """
    配置无效：未知瓦片源、参数取值错误或配置文件无法读取
    """


class InvalidDimension(ExtractorError):
    """
    网格宽度超出支持范围
    """

    def __init__(self, width, reason: str):
        self.width = width
        self.reason = reason
        super().__init__(f"无效的网格宽度 {width}: {reason}")


class TileFetchError(ExtractorError):
    """
    单个瓦片下载或解码失败，携带出错的瓦片坐标
    """

    def __init__(self, coordinate, reason: str, cause: Optional[BaseException] = None):
        self.coordinate = coordinate
        self.reason = reason
        self.cause = cause
        message = f"瓦片 {coordinate} 获取失败: {reason}"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)


class CompositionPrecondition(ExtractorError):
    """
    合成前置条件不满足（网格未填满或瓦片不一致），属于上游编程错误
    """


class ExportError(ExtractorError):
    """
    写出最终图片失败；合成图已经生成，可通过 raster 属性取回
    """

    def __init__(self, path, cause: BaseException, raster=None):
        self.path = path
        self.cause = cause
        self.raster = raster
        super().__init__(f"导出图片失败: {path} ({cause})")


class ExtractionCancelled(ExtractorError):
    """
    提取任务在下载过程中被取消
    """
