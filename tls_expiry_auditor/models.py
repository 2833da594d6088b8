"""
数据模型定义
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Union

from .errors import ProbeError


# SSLSocket.version() 返回值到协议版本的映射
TLS_VERSION_NAMES = {
    'TLSv1': '1.0',
    'TLSv1.1': '1.1',
    'TLSv1.2': '1.2',
    'TLSv1.3': '1.3',
}

UNKNOWN_TLS_VERSION = 'unknown'


def normalize_tls_version(version: Optional[str]) -> str:
    """将协商的协议名称转换为 "1.0"/"1.1"/"1.2"/"1.3"/"unknown" """
    return TLS_VERSION_NAMES.get(version or '', UNKNOWN_TLS_VERSION)


@dataclass(frozen=True)
class CertificateFacts:
    """一次成功探测得到的证书信息"""
    server: str
    port: str
    tls_version: str
    expires_on: datetime

    def days_until_expiry(self, now: Optional[datetime] = None) -> int:
        """
        计算距离过期的天数

        Args:
            now: 参考时间，默认为当前UTC时间

        Returns:
            int: 剩余天数（已过期时为0，不会为负数）
        """
        now = now or datetime.now(timezone.utc)
        return max((self.expires_on - now).days, 0)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """判断证书是否已过期"""
        now = now or datetime.now(timezone.utc)
        return self.expires_on <= now

    def is_expiring_soon(self, warning_days: int = 30, now: Optional[datetime] = None) -> bool:
        """判断是否即将过期（警告期内且尚未过期）"""
        return not self.is_expired(now) and self.days_until_expiry(now) <= warning_days


ProbeOutcome = Union[CertificateFacts, ProbeError]


@dataclass
class AuditConfig:
    """审计运行配置"""
    file_path: Optional[str]
    concurrency_limit: int = 100
    timeout: float = 10.0
    warning_days: int = 30
    sns_topic_arn: Optional[str] = None
    log_level: str = 'INFO'


@dataclass
class AuditResult:
    """审计结果统计"""
    total_endpoints: int
    successful_probes: int
    failed_probes: int
    expiring_endpoints: List[CertificateFacts] = field(default_factory=list)
    expired_endpoints: List[CertificateFacts] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    execution_time: float = 0.0
