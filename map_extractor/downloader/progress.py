# map_extractor/downloader/progress.py

import math
import threading
import time
from typing import Callable, Optional

from loguru import logger


class ProgressState:
    """
    单次提取任务的进度计数，每次运行新建一个

    下载线程调用 increment()，进度报告线程只读取 completed / total
    """

    def __init__(self, total: int):
        self.total = total
        self.completed = 0
        self.start_time = time.time()
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self.completed += 1
            return self.completed

    def snapshot(self):
        with self._lock:
            return self.completed, self.total

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time


def format_elapsed(seconds: float) -> str:
    """
    将秒数格式化为 "1 hours 2 minutes 5 seconds"，为零的单位省略

    Args:
        seconds: 耗时（秒），不足一秒的部分向上取整

    Returns:
        str: 可读的耗时字符串
    """
    remaining = math.ceil(seconds)
    hours, remaining = divmod(remaining, 3600)
    minutes, secs = divmod(remaining, 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours} hours")
    if minutes > 0:
        parts.append(f"{minutes} minutes")
    if secs > 0 or not parts:
        parts.append(f"{secs} seconds")
    return " ".join(parts)


class ProgressReporter:
    """
    定期输出下载百分比，并在结束时输出汇总

    report() 决定是否继续调度；start() 启动一个与本次运行绑定的定时线程，
    运行结束（成功、失败或取消）时由 stop() / finish() 终止
    """

    def __init__(self, interval: float = 10.0, emit: Optional[Callable[[str], None]] = None):
        self.interval = interval
        self.emit = emit or logger.info
        self.done = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def report(self, total: int, completed: int, is_final: bool = False) -> bool:
        """
        输出一次进度

        Args:
            total: 瓦片总数
            completed: 已完成瓦片数
            is_final: 是否为最终报告

        Returns:
            bool: 是否需要继续调度下一次报告
        """
        if self.done:
            return False

        if is_final:
            self.emit(f"[100% Complete] {total} chunks downloaded successfully.")
            self.done = True
            return False

        percent = completed / total * 100 if total else 100.0
        self.emit(f"[{percent:.2f}% Complete] {completed} out of {total} chunks downloaded.")
        return completed != total

    def start(self, progress: ProgressState):
        """
        启动定时报告线程；立即报告一次，之后每隔 interval 秒报告一次
        """
        self.stop()
        self.done = False
        self._stop_event = threading.Event()
        stop_event = self._stop_event

        def tick():
            while not stop_event.is_set():
                completed, total = progress.snapshot()
                if not self.report(total, completed):
                    break
                if stop_event.wait(self.interval):
                    break
            logger.debug("进度报告线程结束")

        self._thread = threading.Thread(target=tick, name="ProgressReporter", daemon=True)
        self._thread.start()

    def stop(self):
        """
        停止定时报告线程，不输出最终报告
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval + 1)
        self._thread = None

    def finish(self, total: int):
        """
        停止定时报告并输出最终报告，之后的报告全部被抑制
        """
        self.stop()
        self.report(total, total, is_final=True)
