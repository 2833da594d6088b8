"""
服务接口定义
"""
from abc import ABC, abstractmethod
from typing import Iterator
from .models import AuditConfig, CertificateFacts, ProbeOutcome


class EndpointSourceInterface(ABC):
    """端点来源接口"""

    @abstractmethod
    def iter_endpoints(self) -> Iterator[str]:
        """按顺序惰性产生端点字符串"""
        pass


class TLSProbeInterface(ABC):
    """TLS探测器接口"""

    @abstractmethod
    def probe(self, endpoint: str) -> CertificateFacts:
        """探测单个端点，失败时抛出 ProbeError"""
        pass


class ResultReporterInterface(ABC):
    """结果输出接口（可能被多个线程同时调用）"""

    @abstractmethod
    def report(self, endpoint: str, outcome: ProbeOutcome):
        """输出单个端点的结果"""
        pass

    @abstractmethod
    def finish(self):
        """所有端点处理完毕"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""

    @abstractmethod
    def log_audit_start(self, config: AuditConfig):
        """记录审计开始"""
        pass

    @abstractmethod
    def log_outcome(self, endpoint: str, outcome: ProbeOutcome):
        """记录单个端点的结果"""
        pass

    @abstractmethod
    def log_error(self, endpoint: str, error: Exception):
        """记录错误信息"""
        pass
