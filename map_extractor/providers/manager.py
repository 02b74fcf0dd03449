# map_extractor/providers/manager.py

from typing import Dict, List, Optional

from ..errors import ConfigError
from .base import TileProvider
from .bing import BingTileProvider
from .custom import CustomTileProvider
from .xyz import GoogleSatelliteProvider, OSMTileProvider


class ProviderManager:
    """
    简单的 provider 注册 / 获取
    """

    _providers: Dict[str, TileProvider] = {}

    @classmethod
    def register_provider(cls, provider: TileProvider):
        cls._providers[provider.name.lower()] = provider

    @classmethod
    def get_provider(cls, name: str) -> TileProvider:
        """
        获取瓦片提供商

        Args:
            name: 提供商名称

        Returns:
            TileProvider: 瓦片提供商实例

        Raises:
            ConfigError: 未知的瓦片提供商
        """
        p = cls._providers.get(name.lower())
        if not p:
            raise ConfigError(f"未知瓦片源: {name}，可用: {', '.join(cls.list_providers())}")
        return p

    @classmethod
    def list_providers(cls) -> List[str]:
        return list(cls._providers.keys())

    @classmethod
    def create_custom_provider(
        cls,
        name: str,
        url_template: str,
        subdomains: list = None,
        min_zoom: int = 0,
        max_zoom: int = 23,
        headers: Optional[Dict[str, str]] = None,
        register: bool = False,
    ) -> TileProvider:
        """
        创建一个自定义瓦片提供商

        Args:
            name: 提供商名称
            url_template: URL模板
            subdomains: 子域名列表
            min_zoom: 最小缩放级别
            max_zoom: 最大缩放级别
            headers: 附加请求头
            register: 是否注册到全局列表

        Returns:
            TileProvider: 自定义瓦片提供商实例
        """
        if not url_template or "{x}" not in url_template and "{q}" not in url_template:
            raise ConfigError(f"URL模板缺少坐标占位符: {url_template!r}")
        provider = CustomTileProvider(
            name=name,
            url_template=url_template,
            subdomains=subdomains or [],
            min_zoom=min_zoom,
            max_zoom=max_zoom,
            headers=headers,
        )
        if register:
            cls.register_provider(provider)
        return provider

    @classmethod
    def resolve(cls, config) -> TileProvider:
        """
        根据配置选择瓦片源：给出 url_template 时使用自定义模板，否则按名称查找预置源
        """
        if config.url_template:
            return cls.create_custom_provider("custom", config.url_template)
        return cls.get_provider(config.provider)


# 注册默认 provider
ProviderManager.register_provider(GoogleSatelliteProvider())
ProviderManager.register_provider(OSMTileProvider())
ProviderManager.register_provider(BingTileProvider())
