# map_extractor/config.py

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional, Union

from loguru import logger

from .errors import ConfigError

# 超过该宽度时合成图边长 (64 * 256 = 16384) 可能超出常见栅格画布限制
MAX_GRID_WIDTH = 64
TILE_SIZE = 256
DEFAULT_OUTPUT_NAME = "extracted_map.png"
DEFAULT_ZOOM = 21

_INT_FIELDS = ("origin_x", "origin_y", "zoom", "tile_size", "max_workers", "retries")
_NUMBER_FIELDS = ("timeout", "backoff_factor", "max_backoff", "report_interval")


@dataclass
class ExtractorConfig:
    """
    一次提取任务的全部参数
    """
    origin_x: int
    origin_y: int
    zoom: int = DEFAULT_ZOOM
    width: int = 8
    auto_start: bool = False

    # 瓦片源：预置名称，或者直接给出 URL 模板（优先）
    provider: str = "google"
    url_template: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    tile_size: int = TILE_SIZE
    image_mode: str = "RGBA"

    max_workers: int = 4
    timeout: float = 10
    retries: int = 0
    backoff_factor: float = 0.5
    max_backoff: float = 8.0

    report_interval: float = 10.0
    output_dir: str = "."
    output_name: str = DEFAULT_OUTPUT_NAME
    enable_performance_monitor: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self):
        """
        校验并规范化参数；宽度超过上限时截断并记录警告

        Raises:
            InvalidDimension: 宽度不是正整数
            ConfigError: 其它参数取值错误
        """
        from .grid import clamp_width

        self.width = clamp_width(self.width)

        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} 必须是整数: {value!r}")
        for name in _NUMBER_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{name} 必须是数值: {value!r}")
        if self.zoom < 0:
            raise ConfigError(f"缩放级别不能为负数: {self.zoom}")
        if self.tile_size <= 0:
            raise ConfigError(f"瓦片尺寸必须大于0: {self.tile_size}")
        if self.max_workers < 1:
            raise ConfigError(f"线程数至少为1: {self.max_workers}")
        if self.timeout <= 0:
            raise ConfigError(f"超时时间必须大于0: {self.timeout}")
        if self.retries < 0:
            raise ConfigError(f"重试次数不能为负数: {self.retries}")
        if self.backoff_factor < 0 or self.max_backoff < 0:
            raise ConfigError("退避参数不能为负数")
        if self.report_interval <= 0:
            raise ConfigError(f"进度报告间隔必须大于0: {self.report_interval}")
        if not self.output_name:
            raise ConfigError("输出文件名不能为空")

    @property
    def output_path(self) -> Path:
        """
        最终图片路径，输出目录经过 Windows/WSL 路径转换
        """
        from .utils import convert_path

        return convert_path(str(self.output_dir)) / self.output_name

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict, **overrides) -> "ExtractorConfig":
        """
        从字典创建配置，忽略未知字段；overrides 中值为 None 的项不会覆盖

        Args:
            data: 配置字典
            overrides: 额外覆盖的参数（通常来自命令行）

        Returns:
            ExtractorConfig: 配置对象
        """
        known = {f.name for f in fields(cls)}
        merged = {k: v for k, v in data.items() if k in known}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"忽略未知配置项: {', '.join(unknown)}")
        merged.update({k: v for k, v in overrides.items() if v is not None})

        for name in ("origin_x", "origin_y"):
            if name not in merged:
                raise ConfigError(f"缺少必需参数: {name}")
        return cls(**merged)

    @staticmethod
    def read_file(path: Union[str, Path]) -> dict:
        """
        读取 JSON 配置文件为字典，不做字段校验

        Raises:
            ConfigError: 文件不存在或不是合法的 JSON 对象
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"无法读取配置文件 {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"配置文件内容必须是 JSON 对象: {path}")
        return data

    @classmethod
    def from_file(cls, path: Union[str, Path], **overrides) -> "ExtractorConfig":
        """
        从 JSON 配置文件加载

        Args:
            path: 配置文件路径
            overrides: 额外覆盖的参数

        Returns:
            ExtractorConfig: 配置对象

        Raises:
            ConfigError: 文件不存在、不是合法的 JSON 对象或字段取值错误
        """
        data = cls.read_file(path)
        logger.info(f"加载配置文件: {path}")
        return cls.from_dict(data, **overrides)
