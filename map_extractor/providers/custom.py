# map_extractor/providers/custom.py

from typing import Dict, Optional

from .base import TileProvider, TileProviderType
from .bing import BingTileProvider


class CustomTileProvider(TileProvider):
    """
    自定义瓦片提供商，URL模板支持 {x} {y} {z} {s} {q} 占位符
    """

    def __init__(
        self,
        name: str,
        url_template: str,
        subdomains: list = None,
        min_zoom: int = 0,
        max_zoom: int = 23,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            name=name,
            provider_type=TileProviderType.CUSTOM,
            url_template=url_template,
            min_zoom=min_zoom,
            max_zoom=max_zoom,
            subdomains=subdomains or [],
            attribution="Custom Provider",
            headers=headers,
        )

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        url = self.url_template

        if "{q}" in url:
            quadkey = BingTileProvider.tile_to_quadkey(x, y, zoom)
            url = url.replace("{q}", quadkey)

        url = url.replace("{z}", str(zoom))
        url = url.replace("{x}", str(x))
        url = url.replace("{y}", str(y))

        if "{s}" in url and self.subdomains:
            url = url.replace("{s}", self.pick_subdomain(x, y))

        return url
