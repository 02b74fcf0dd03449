# map_extractor/downloader/grid_downloader.py

import threading
from queue import Queue, Empty
from typing import Callable, List, Optional

from loguru import logger
from PIL import Image

from ..errors import ExtractionCancelled, TileFetchError
from ..grid import CoordinateGrid, GridEnumerator
from .fetcher import TileFetcher
from .progress import ProgressState

GridMatrix = List[List[Image.Image]]


class GridDownloader:
    """
    网格下载器（每次运行新建一个）：固定数量的工作线程从任务队列取 (row, col, coord)，
    下载结果写入预分配矩阵中各自的单元格

    任一瓦片失败时停止派发新任务，等待在途任务结束后抛出该错误，不返回部分结果
    """

    def __init__(
        self,
        fetcher: TileFetcher,
        max_workers: int = 4,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ):
        """
        初始化下载器

        Args:
            fetcher: 单瓦片下载器
            max_workers: 工作线程数，1 表示顺序下载
            progress_callback: 每完成一个瓦片调用一次 callback(completed, total)
        """
        self.fetcher = fetcher
        self.max_workers = max(1, max_workers)
        self.progress_callback = progress_callback
        self.stop_event = threading.Event()
        self._error: Optional[Exception] = None
        self._error_lock = threading.Lock()

    def cancel(self):
        """
        取消下载，工作线程在发起下一个请求前检查
        """
        logger.info("取消网格下载")
        self.stop_event.set()

    def download(self, grid: CoordinateGrid, progress: ProgressState) -> GridMatrix:
        """
        下载整个网格

        Args:
            grid: 坐标网格 grid[row][col]
            progress: 本次运行的进度计数

        Returns:
            GridMatrix: 与坐标网格同形的图像矩阵

        Raises:
            TileFetchError: 任一瓦片失败
            ExtractionCancelled: 下载被取消
        """
        matrix: List[List[Optional[Image.Image]]] = [[None] * len(row) for row in grid]
        task_queue: Queue = Queue()
        for task in GridEnumerator.iter_cells(grid):
            task_queue.put(task)

        actual_threads = min(self.max_workers, max(1, task_queue.qsize()))
        logger.info(f"开始下载 {progress.total} 个瓦片，线程数={actual_threads}")

        workers = []
        for i in range(actual_threads):
            t = threading.Thread(
                target=self._worker,
                args=(task_queue, matrix, progress),
                name=f"Downloader-{i + 1}",
                daemon=True,
            )
            workers.append(t)
            t.start()

        for t in workers:
            t.join()

        if self._error is not None:
            logger.error(f"网格下载失败，已完成 {progress.completed}/{progress.total}，丢弃已下载瓦片: {self._error}")
            raise self._error
        if self.stop_event.is_set():
            logger.warning(f"网格下载已取消，已完成 {progress.completed}/{progress.total}")
            raise ExtractionCancelled(f"下载已取消，已完成 {progress.completed}/{progress.total}")

        missing = [(r, c) for r, row in enumerate(matrix) for c, cell in enumerate(row) if cell is None]
        if missing:
            # 正常情况下不会发生：所有任务都已成功
            raise RuntimeError(f"下载结束但存在空缺单元格: {missing[:5]}")

        logger.info(f"网格下载完成: {progress.completed}/{progress.total}")
        return matrix

    def _worker(self, task_queue: Queue, matrix, progress: ProgressState):
        thread_name = threading.current_thread().name
        logger.debug(f"{thread_name} 启动")

        while not self.stop_event.is_set():
            try:
                row, col, coord = task_queue.get_nowait()
            except Empty:
                break

            try:
                image = self.fetcher.fetch(coord, stop_event=self.stop_event)
            except ExtractionCancelled:
                break
            except Exception as e:
                if not isinstance(e, TileFetchError):
                    logger.exception(f"{thread_name} 处理瓦片 {coord} 时发生未预期的异常")
                with self._error_lock:
                    if self._error is None:
                        self._error = e
                self.stop_event.set()
                break
            finally:
                task_queue.task_done()

            matrix[row][col] = image
            completed = progress.increment()
            logger.debug(f"{thread_name} 完成瓦片 {coord} -> [{row}][{col}]")
            if self.progress_callback:
                self.progress_callback(completed, progress.total)

        logger.debug(f"{thread_name} 结束")
