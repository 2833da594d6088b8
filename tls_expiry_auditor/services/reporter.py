"""
结果输出服务
"""
import sys
import json
import threading
from datetime import datetime, timezone
from typing import Optional, TextIO, Union

from ..errors import ProbeError
from ..interfaces import ResultReporterInterface
from ..models import CertificateFacts, ProbeOutcome


FINISHED_MARKER = "Finished"


def format_timestamp(value: datetime) -> str:
    """格式化为 UTC 时间字符串，例如 2024-12-31 23:59:59 +0000 UTC"""
    return value.astimezone(timezone.utc).strftime('%Y-%m-%d %H:%M:%S +0000 UTC')


def format_certificate_facts(facts: CertificateFacts, now: Optional[datetime] = None) -> str:
    """
    渲染成功探测的结果块

    Args:
        facts: 证书信息
        now: 计算剩余天数的参考时间，默认为当前时间

    Returns:
        str: 渲染后的文本
    """
    return (
        "\n"
        f"Checking certificate for server: {facts.server}\n"
        f"Version: TLS {facts.tls_version}\n"
        f"Expires On: {format_timestamp(facts.expires_on)}\n"
        f"In {facts.days_until_expiry(now)} days\n"
    )


def format_probe_error(endpoint: str, error: Union[ProbeError, str]) -> str:
    """渲染失败端点的单行输出"""
    return f"{json.dumps(endpoint, ensure_ascii=False)}: error: {error}\n"


class ConsoleReporter(ResultReporterInterface):
    """将结果写入文本流（默认标准输出），可被多个线程同时调用"""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def report(self, endpoint: str, outcome: ProbeOutcome, now: Optional[datetime] = None):
        if isinstance(outcome, CertificateFacts):
            text = format_certificate_facts(outcome, now)
        else:
            text = format_probe_error(endpoint, outcome)
        self._write(text)

    def finish(self):
        self._write(f"{FINISHED_MARKER}\n")

    def _write(self, text: str):
        # 整块写入，避免不同端点的输出交错
        with self._lock:
            self.stream.write(text)
            self.stream.flush()
