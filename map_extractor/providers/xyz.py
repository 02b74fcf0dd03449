# map_extractor/providers/xyz.py

from .base import TileProvider, TileProviderType


class GoogleSatelliteProvider(TileProvider):
    """
    Google 卫星影像，参数通过查询字符串传递，256像素 JPEG 瓦片
    """

    def __init__(self):
        super().__init__(
            name="google",
            provider_type=TileProviderType.GOOGLE,
            url_template="https://khms1.google.com/kh/v=988?x={x}&y={y}&z={z}",
            min_zoom=0,
            max_zoom=22,
            subdomains=[],
            attribution="© Google",
        )

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        return self.url_template.format(x=x, y=y, z=zoom)


class OSMTileProvider(TileProvider):
    """
    OpenStreetMap 标准 XYZ 瓦片
    """

    def __init__(self):
        super().__init__(
            name="osm",
            provider_type=TileProviderType.OSM,
            url_template="https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
            min_zoom=0,
            max_zoom=19,
            subdomains=["a", "b", "c"],
            attribution="© OpenStreetMap contributors",
        )

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        s = self.pick_subdomain(x, y)
        return self.url_template.format(s=s, z=zoom, x=x, y=y)
