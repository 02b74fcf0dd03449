# map_extractor/downloader/fetcher.py

import io
import threading
import time
from typing import Dict, Optional

import requests
from loguru import logger
from PIL import Image, UnidentifiedImageError

from ..config import TILE_SIZE
from ..errors import ExtractionCancelled, TileFetchError
from ..grid import TileCoordinate
from ..providers import TileProvider
from .performance import PerformanceMonitor

# 可重试的HTTP状态码
RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class TileFetcher:
    """
    按坐标下载单个瓦片并解码为固定尺寸的图像

    默认不重试（retries=0）；retries > 0 时对网络错误和可重试状态码
    按 min(backoff_factor * 2**attempt, max_backoff) 秒退避后重试
    """

    def __init__(
        self,
        provider: TileProvider,
        tile_size: int = TILE_SIZE,
        image_mode: str = "RGBA",
        timeout: float = 10,
        retries: int = 0,
        backoff_factor: float = 0.5,
        max_backoff: float = 8.0,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ):
        self.provider = provider
        self.tile_size = tile_size
        self.image_mode = image_mode
        self.timeout = timeout
        self.retries = retries
        self.backoff_factor = backoff_factor
        self.max_backoff = max_backoff
        self.performance_monitor = performance_monitor
        self._owns_session = session is None
        self.session = session or self._create_request_session()
        self.session.headers.update(provider.headers)
        if headers:
            self.session.headers.update(headers)

    @classmethod
    def from_config(cls, config, provider: TileProvider, performance_monitor=None) -> "TileFetcher":
        return cls(
            provider,
            tile_size=config.tile_size,
            image_mode=config.image_mode,
            timeout=config.timeout,
            retries=config.retries,
            backoff_factor=config.backoff_factor,
            max_backoff=config.max_backoff,
            headers=config.headers,
            performance_monitor=performance_monitor,
        )

    def _create_request_session(self) -> requests.Session:
        """
        创建并配置请求会话，连接池大小足够多个下载线程复用
        """
        session = requests.Session()

        session.headers.update({
            'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36',
            'Accept': 'image/*',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive'
        })
        session.max_redirects = 3

        # 重试由 fetch() 显式控制，适配器本身不重试
        adapter = requests.adapters.HTTPAdapter(
            pool_connections=64,
            pool_maxsize=64,
            pool_block=False,
            max_retries=0,
        )
        session.mount('http://', adapter)
        session.mount('https://', adapter)

        logger.debug("创建新的请求会话")
        return session

    def _backoff(self, attempt: int) -> float:
        return min(self.backoff_factor * (2 ** attempt), self.max_backoff)

    def _wait(self, coord: TileCoordinate, delay: float, stop_event: Optional[threading.Event]):
        """
        重试前退避等待；等待期间运行被取消时立即抛出 ExtractionCancelled
        """
        if stop_event is None:
            time.sleep(delay)
        elif stop_event.wait(delay):
            raise ExtractionCancelled(f"瓦片 {coord} 在重试等待中被取消")

    def fetch(self, coord: TileCoordinate, stop_event: Optional[threading.Event] = None) -> Image.Image:
        """
        下载并解码一个瓦片

        Args:
            coord: 瓦片坐标
            stop_event: 所属运行的停止事件，重试等待时检查

        Returns:
            Image.Image: tile_size × tile_size 的图像

        Raises:
            TileFetchError: 网络错误、非成功状态码、无法解码或尺寸不符
            ExtractionCancelled: 重试等待期间运行被取消
        """
        url = self.provider.get_tile_url(coord.x, coord.y, coord.zoom)
        payload = self._download(coord, url, stop_event)
        return self._decode(coord, payload)

    def _download(self, coord: TileCoordinate, url: str, stop_event: Optional[threading.Event]) -> bytes:
        attempt = 0
        while True:
            start = time.time()
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.RequestException as e:
                if attempt < self.retries:
                    delay = self._backoff(attempt)
                    logger.warning(f"瓦片 {coord} 请求失败，{delay:.2f} 秒后重试 ({attempt + 1}/{self.retries}): {e}")
                    self._wait(coord, delay, stop_event)
                    attempt += 1
                    continue
                raise TileFetchError(coord, "网络请求失败", e) from e

            status = response.status_code
            if 200 <= status < 300:
                content = response.content
                if self.performance_monitor:
                    self.performance_monitor.record_download(coord, time.time() - start, len(content))
                logger.debug(f"瓦片 {coord} 下载完成: {len(content)} bytes")
                return content

            if status in RETRY_STATUS_CODES and attempt < self.retries:
                delay = self._backoff(attempt)
                logger.warning(f"瓦片 {coord} 返回状态码 {status}，{delay:.2f} 秒后重试 ({attempt + 1}/{self.retries})")
                self._wait(coord, delay, stop_event)
                attempt += 1
                continue
            raise TileFetchError(coord, f"HTTP状态码 {status}: {url}")

    def _decode(self, coord: TileCoordinate, payload: bytes) -> Image.Image:
        if not payload:
            raise TileFetchError(coord, "响应内容为空")
        try:
            with Image.open(io.BytesIO(payload)) as img:
                img.load()
                tile = img.convert(self.image_mode)
        except (UnidentifiedImageError, OSError) as e:
            raise TileFetchError(coord, "图像无法解码", e) from e

        expected = (self.tile_size, self.tile_size)
        if tile.size != expected:
            raise TileFetchError(coord, f"瓦片尺寸 {tile.size} 与预期 {expected} 不符")
        return tile

    def close(self):
        if self._owns_session:
            self.session.close()
