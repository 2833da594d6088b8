"""
有界并发调度服务
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional

from ..errors import ProbeError
from ..interfaces import TLSProbeInterface
from ..models import AuditConfig, ProbeOutcome


OutcomeCallback = Callable[[str, ProbeOutcome], None]


class CompletionTracker:
    """已启动但未完成的任务计数器，计数归零时唤醒等待者"""

    def __init__(self):
        self._pending = 0
        self._condition = threading.Condition()

    @property
    def pending(self) -> int:
        with self._condition:
            return self._pending

    def add(self, count: int = 1):
        with self._condition:
            self._pending += count

    def done(self):
        with self._condition:
            if self._pending <= 0:
                raise ValueError("done() called more times than add()")
            self._pending -= 1
            if self._pending == 0:
                self._condition.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        等待所有任务完成

        Args:
            timeout: 最长等待时间（秒），None 表示一直等待

        Returns:
            bool: 是否在超时前全部完成
        """
        with self._condition:
            return self._condition.wait_for(lambda: self._pending == 0, timeout)


class BoundedDispatcher:
    """有界并发调度器：每个端点一次探测，同时进行的探测数不超过上限"""

    def __init__(self, probe: TLSProbeInterface, config: AuditConfig):
        """
        初始化调度器

        Args:
            probe: TLS探测器
            config: 审计配置（使用其中的 concurrency_limit）
        """
        self._validate_limit(config.concurrency_limit)
        self.probe = probe
        self.concurrency_limit = config.concurrency_limit
        self.logger = logging.getLogger(__name__)

    def run(self, endpoints: Iterable[str], on_outcome: OutcomeCallback,
            concurrency_limit: Optional[int] = None) -> int:
        """
        并发探测所有端点

        每个端点的结果恰好交给 on_outcome 一次（在工作线程中调用，端点之间无顺序保证）。
        所有已启动的探测完成后才返回；端点序列本身抛出异常时，也会先等待已启动的探测完成再抛出。

        Args:
            endpoints: 端点序列（可以是惰性迭代器）
            on_outcome: 结果回调 (endpoint, outcome)
            concurrency_limit: 并发上限，None 时使用配置值

        Returns:
            int: 已调度的端点数量

        Raises:
            ValueError: 并发上限小于1
        """
        limit = self.concurrency_limit if concurrency_limit is None else concurrency_limit
        self._validate_limit(limit)

        slots = threading.BoundedSemaphore(limit)
        tracker = CompletionTracker()
        defects: List[BaseException] = []
        defects_lock = threading.Lock()
        dispatched = 0

        self.logger.debug(f"开始调度，并发上限: {limit}")

        def unit(endpoint: str):
            try:
                outcome = self._probe_endpoint(endpoint)
                on_outcome(endpoint, outcome)
            except Exception as e:
                self.logger.exception(f"处理端点 {endpoint} 时发生意外错误: {type(e).__name__}: {str(e)}")
                with defects_lock:
                    defects.append(e)
            finally:
                slots.release()
                tracker.done()

        with ThreadPoolExecutor(max_workers=limit, thread_name_prefix='tls-probe') as executor:
            try:
                for endpoint in endpoints:
                    # 并发数已满时在此阻塞，直到有探测完成
                    slots.acquire()
                    tracker.add()
                    try:
                        executor.submit(unit, endpoint)
                    except BaseException:
                        tracker.done()
                        slots.release()
                        raise
                    dispatched += 1
            finally:
                tracker.wait()

        self.logger.debug(f"调度完成，共 {dispatched} 个端点")

        if defects:
            raise defects[0]

        return dispatched

    def _probe_endpoint(self, endpoint: str) -> ProbeOutcome:
        try:
            return self.probe.probe(endpoint)
        except ProbeError as e:
            return e

    @staticmethod
    def _validate_limit(limit: int):
        if not isinstance(limit, int) or limit < 1:
            raise ValueError(f"concurrency limit must be a positive integer, got {limit!r}")
