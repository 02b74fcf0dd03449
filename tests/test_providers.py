"""Tests for tile URL templates."""

import pytest

from map_extractor.config import ExtractorConfig
from map_extractor.errors import ConfigError
from map_extractor.providers import BingTileProvider, CustomTileProvider, ProviderManager


def test_google_url():
    provider = ProviderManager.get_provider("google")
    assert provider.get_tile_url(571370, 828241, 21) == "https://khms1.google.com/kh/v=988?x=571370&y=828241&z=21"


def test_osm_subdomain_rotation():
    provider = ProviderManager.get_provider("OSM")
    assert provider.get_tile_url(1, 2, 3) == "https://a.tile.openstreetmap.org/3/1/2.png"
    assert provider.get_tile_url(2, 2, 3) == "https://b.tile.openstreetmap.org/3/2/2.png"


@pytest.mark.parametrize("x,y,zoom,expected", [
    (3, 5, 3, "213"),
    (0, 0, 1, "0"),
    (1, 1, 1, "3"),
])
def test_quadkey(x, y, zoom, expected):
    assert BingTileProvider.tile_to_quadkey(x, y, zoom) == expected


def test_custom_placeholders():
    provider = CustomTileProvider("c", "https://{s}.host/{z}/{x}/{y}?q={q}", subdomains=["m1", "m2"])
    assert provider.get_tile_url(3, 5, 3) == "https://m1.host/3/3/5?q=213"


def test_unknown_provider():
    with pytest.raises(ConfigError):
        ProviderManager.get_provider("missing")


def test_custom_template_requires_coordinates():
    with pytest.raises(ConfigError):
        ProviderManager.create_custom_provider("bad", "https://host/tile.png")


def test_resolve_prefers_url_template():
    config = ExtractorConfig(origin_x=0, origin_y=0, url_template="https://host/{z}/{x}/{y}.jpg")
    provider = ProviderManager.resolve(config)
    assert provider.get_tile_url(1, 2, 3) == "https://host/3/1/2.jpg"
    assert "custom" not in ProviderManager.list_providers()


def test_resolve_by_name():
    config = ExtractorConfig(origin_x=0, origin_y=0, provider="bing")
    assert ProviderManager.resolve(config).name == "bing"
