# map_extractor/downloader/performance.py

import threading
import time
from typing import Dict, Optional

from loguru import logger


class PerformanceMonitor:
    """
    网格运行的性能统计：相对网格总数的完成速度、预计剩余时间、流量和最慢瓦片

    每次运行开始时调用 begin(total) 重置
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.begin(0)

    def begin(self, total: int):
        with self.lock:
            self.total = total
            self.start_time = time.time()
            self.tiles_done = 0
            self.bytes_downloaded = 0
            self.latency_sum = 0.0
            self.slowest_tile = None
            self.slowest_latency = 0.0

    def record_download(self, coord, duration: float, bytes_count: int):
        """
        记录一个瓦片的下载耗时和字节数
        """
        with self.lock:
            self.tiles_done += 1
            self.bytes_downloaded += bytes_count
            self.latency_sum += duration
            if self.slowest_tile is None or duration > self.slowest_latency:
                self.slowest_tile = coord
                self.slowest_latency = duration

    def get_statistics(self) -> Dict:
        with self.lock:
            elapsed = time.time() - self.start_time
            tiles_per_second = self.tiles_done / elapsed if elapsed > 0 else 0.0
            remaining = max(0, self.total - self.tiles_done)
            eta: Optional[float] = remaining / tiles_per_second if tiles_per_second > 0 else None
            return {
                'elapsed': elapsed,
                'tiles_done': self.tiles_done,
                'tiles_total': self.total,
                'tiles_per_second': tiles_per_second,
                'eta_seconds': eta if remaining else 0.0,
                'bytes_downloaded': self.bytes_downloaded,
                'mean_latency': self.latency_sum / self.tiles_done if self.tiles_done else 0.0,
                'slowest_tile': self.slowest_tile,
                'slowest_latency': self.slowest_latency,
            }

    def log_statistics(self):
        stats = self.get_statistics()
        logger.info(
            f"性能统计: {stats['tiles_done']}/{stats['tiles_total']} 个瓦片, "
            f"{stats['tiles_per_second']:.2f} tiles/s, "
            f"{stats['bytes_downloaded'] / 1024 / 1024:.2f} MB, "
            f"平均耗时 {stats['mean_latency']:.3f} 秒"
        )
        if stats['slowest_tile'] is not None:
            logger.info(f"最慢瓦片: {stats['slowest_tile']} ({stats['slowest_latency']:.3f} 秒)")
