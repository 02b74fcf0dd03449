# map_extractor/extractor.py

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from PIL import Image

from .compositor import Compositor
from .config import ExtractorConfig
from .downloader import (
    GridDownloader,
    PerformanceMonitor,
    ProgressReporter,
    ProgressState,
    TileFetcher,
    format_elapsed,
)
from .errors import ConfigError, ExportError, ExtractionCancelled, TileFetchError
from .exporter import ImageExporter
from .grid import GridEnumerator
from .providers import ProviderManager


class ExtractionState(Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    COMPOSITING = "compositing"
    EXPORTING = "exporting"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


# 允许的状态转换；终止状态可以重新开始新的一次运行
_TRANSITIONS = {
    ExtractionState.IDLE: {ExtractionState.DOWNLOADING},
    ExtractionState.DOWNLOADING: {
        ExtractionState.COMPOSITING,
        ExtractionState.FAILED,
        ExtractionState.CANCELLED,
    },
    ExtractionState.COMPOSITING: {
        ExtractionState.EXPORTING,
        ExtractionState.DONE,
        ExtractionState.FAILED,
    },
    ExtractionState.EXPORTING: {ExtractionState.DONE, ExtractionState.FAILED},
    ExtractionState.DONE: {ExtractionState.DOWNLOADING},
    ExtractionState.FAILED: {ExtractionState.DOWNLOADING},
    ExtractionState.CANCELLED: {ExtractionState.DOWNLOADING},
}


@dataclass
class ExtractionResult:
    """
    一次提取任务的结果
    """
    raster: Image.Image
    output_path: Optional[Path]
    tile_count: int
    elapsed: float
    state: ExtractionState

    def get_statistics(self) -> dict:
        return {
            "tiles": self.tile_count,
            "size": f"{self.raster.width}x{self.raster.height}",
            "elapsed": format_elapsed(self.elapsed),
            "output": str(self.output_path) if self.output_path else "-",
            "state": self.state.value,
        }


class MapExtractor:
    """
    地图提取器：下载瓦片网格 -> 拼接合成图 -> 导出图片

    状态严格按 IDLE → DOWNLOADING → COMPOSITING → EXPORTING → DONE 推进，
    下载失败进入 FAILED，取消进入 CANCELLED
    """

    def __init__(
        self,
        config: ExtractorConfig,
        fetcher: Optional[TileFetcher] = None,
        exporter: Optional[ImageExporter] = None,
        emit: Optional[Callable[[str], None]] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ):
        """
        初始化提取器

        Args:
            config: 提取参数
            fetcher: 单瓦片下载器，默认按配置创建
            exporter: 图片导出器，默认写出 PNG 文件
            emit: 进度与汇总信息的输出函数，默认 logger.info
            progress_callback: 每完成一个瓦片调用一次 callback(completed, total)
        """
        self.config = config
        self.emit = emit or logger.info
        self.progress_callback = progress_callback
        self.performance_monitor = PerformanceMonitor() if config.enable_performance_monitor else None

        if fetcher is None:
            provider = ProviderManager.resolve(config)
            if not provider.supports_zoom(config.zoom):
                raise ConfigError(
                    f"缩放级别 {config.zoom} 超出瓦片源 {provider.name} 的范围 [{provider.min_zoom}, {provider.max_zoom}]"
                )
            fetcher = TileFetcher.from_config(config, provider, self.performance_monitor)
        self.fetcher = fetcher
        self.exporter = exporter or ImageExporter()

        self.state = ExtractionState.IDLE
        self.progress: Optional[ProgressState] = None
        self.reporter: Optional[ProgressReporter] = None
        self.image_matrix = None
        self.raster: Optional[Image.Image] = None
        self._downloader: Optional[GridDownloader] = None
        self._lock = threading.Lock()

        logger.info(
            f"初始化提取器: origin=({config.origin_x}, {config.origin_y}), zoom={config.zoom}, "
            f"width={config.width}, threads={config.max_workers}"
        )

        if config.auto_start:
            self.start()

    def _transition(self, new_state: ExtractionState):
        with self._lock:
            if new_state not in _TRANSITIONS[self.state]:
                raise RuntimeError(f"非法状态转换: {self.state.value} -> {new_state.value}")
            logger.debug(f"状态转换: {self.state.value} -> {new_state.value}")
            self.state = new_state

    def start(self, download_when_complete: bool = True) -> ExtractionResult:
        """
        执行一次完整的提取

        Args:
            download_when_complete: 合成完成后是否导出图片文件

        Returns:
            ExtractionResult: 提取结果

        Raises:
            TileFetchError: 任一瓦片下载失败，不产生合成图
            ExtractionCancelled: 运行被取消
            CompositionPrecondition: 瓦片尺寸或模式不一致，运行进入 FAILED
            ExportError: 导出失败；此时运行已完成，合成图可从异常的 raster 属性取回
        """
        config = self.config
        grid = GridEnumerator.enumerate(config.origin_x, config.origin_y, config.width, config.zoom)
        total = GridEnumerator.count(grid)

        # 先建好本次运行的下载器，进入 DOWNLOADING 后 cancel() 立即可用
        self.image_matrix = None
        self.raster = None
        self.progress = ProgressState(total)
        self.reporter = ProgressReporter(config.report_interval, emit=self.emit)
        self._downloader = GridDownloader(self.fetcher, config.max_workers, self.progress_callback)
        if self.performance_monitor:
            self.performance_monitor.begin(total)
        self._transition(ExtractionState.DOWNLOADING)

        self.reporter.start(self.progress)
        try:
            self.image_matrix = self._downloader.download(grid, self.progress)
        except TileFetchError as e:
            self.reporter.stop()
            self._transition(ExtractionState.FAILED)
            logger.error(f"提取失败，瓦片 {e.coordinate}: {e.reason}")
            raise
        except ExtractionCancelled:
            self.reporter.stop()
            self._transition(ExtractionState.CANCELLED)
            logger.warning("提取已取消")
            raise
        except Exception:
            self.reporter.stop()
            self._transition(ExtractionState.FAILED)
            raise

        self._transition(ExtractionState.COMPOSITING)
        try:
            self.raster = Compositor.compose(self.image_matrix)
        except Exception as e:
            self.reporter.stop()
            self.image_matrix = None
            self._transition(ExtractionState.FAILED)
            logger.error(f"合成失败: {e}")
            raise
        self.image_matrix = None
        self.reporter.finish(total)

        elapsed = self.progress.elapsed
        self.emit(f"Operation completed in {format_elapsed(elapsed)}.")
        if self.performance_monitor:
            self.performance_monitor.log_statistics()

        output_path = None
        if download_when_complete:
            self._transition(ExtractionState.EXPORTING)
            try:
                output_path = self.exporter.export(self.raster, config.output_path)
            except ExportError:
                self._transition(ExtractionState.DONE)
                raise
            except Exception:
                self._transition(ExtractionState.FAILED)
                logger.exception("导出时发生未预期的异常")
                raise
        self._transition(ExtractionState.DONE)

        return ExtractionResult(
            raster=self.raster,
            output_path=output_path,
            tile_count=total,
            elapsed=elapsed,
            state=self.state,
        )

    def cancel(self):
        """
        取消正在进行的下载；在发起下一个瓦片请求前生效
        """
        if self.state is ExtractionState.DOWNLOADING and self._downloader is not None:
            self._downloader.cancel()
        else:
            logger.info(f"当前状态 {self.state.value} 无需取消")

    def close(self):
        self.fetcher.close()
