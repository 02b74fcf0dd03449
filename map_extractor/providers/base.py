# map_extractor/providers/base.py

from enum import Enum
from typing import Dict, Optional


class TileProviderType(Enum):
    """
    瓦片提供商类型枚举
    """
    GOOGLE = "google"
    OSM = "osm"
    BING = "bing"
    CUSTOM = "custom"


class TileProvider:
    """
    抽象基类，具体的 Google / OSM / Bing 等继承它
    """

    def __init__(
        self,
        name: str,
        provider_type: TileProviderType,
        url_template: str,
        min_zoom: int,
        max_zoom: int,
        subdomains: list,
        attribution: str = "",
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        初始化瓦片提供商

        Args:
            name: 提供商名称
            provider_type: 提供商类型
            url_template: URL模板
            min_zoom: 最小缩放级别
            max_zoom: 最大缩放级别
            subdomains: 子域名列表
            attribution: 版权信息
            headers: 请求该瓦片源时附加的请求头
        """
        self.name = name
        self.provider_type = provider_type
        self.url_template = url_template
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.subdomains = subdomains or []
        self.attribution = attribution
        self.headers = dict(headers or {})

    def supports_zoom(self, zoom: int) -> bool:
        return self.min_zoom <= zoom <= self.max_zoom

    def pick_subdomain(self, x: int, y: int) -> str:
        """
        按坐标轮询子域名，没有子域名时返回空字符串
        """
        if not self.subdomains:
            return ""
        return self.subdomains[(x + y) % len(self.subdomains)]

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        """
        获取瓦片URL

        Args:
            x: 瓦片x坐标
            y: 瓦片y坐标
            zoom: 缩放级别

        Returns:
            str: 瓦片URL
        """
        raise NotImplementedError
