"""
证书过期计算服务
"""
from datetime import datetime, timezone
from typing import List, Optional
from ..models import CertificateFacts


class ExpiryCalculator:
    """证书过期计算器"""

    def __init__(self, warning_days: int = 30, now: Optional[datetime] = None):
        """
        初始化过期计算器

        Args:
            warning_days: 提前警告天数，默认30天
            now: 固定的参考时间，None 表示每次取当前时间
        """
        self.warning_days = warning_days
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now(timezone.utc)

    def calculate_days_until_expiry(self, expires_on: datetime) -> int:
        """
        计算距离过期的天数

        Args:
            expires_on: 过期时间

        Returns:
            int: 剩余天数（已过期时为0）
        """
        return max((expires_on - self.now).days, 0)

    def is_expiring_soon(self, facts: CertificateFacts) -> bool:
        """判断证书是否即将过期（在警告期内）"""
        return facts.is_expiring_soon(self.warning_days, self.now)

    def is_expired(self, facts: CertificateFacts) -> bool:
        """判断证书是否已过期"""
        return facts.is_expired(self.now)

    def filter_expiring_certificates(self, certificates: List[CertificateFacts]) -> List[CertificateFacts]:
        return [cert for cert in certificates if self.is_expiring_soon(cert)]

    def filter_expired_certificates(self, certificates: List[CertificateFacts]) -> List[CertificateFacts]:
        return [cert for cert in certificates if self.is_expired(cert)]

    def categorize_certificates(self, certificates: List[CertificateFacts]) -> dict:
        """
        对证书进行分类

        Args:
            certificates: 证书列表

        Returns:
            dict: 分类结果
        """
        expired = self.filter_expired_certificates(certificates)
        expiring_soon = self.filter_expiring_certificates(certificates)

        return {
            'total': len(certificates),
            'expired': expired,
            'expiring_soon': expiring_soon,
            'healthy': [cert for cert in certificates
                        if not self.is_expired(cert) and not self.is_expiring_soon(cert)]
        }

    def get_expiry_summary(self, certificates: List[CertificateFacts]) -> str:
        """
        获取过期状态摘要

        Args:
            certificates: 证书列表

        Returns:
            str: 摘要信息
        """
        categorized = self.categorize_certificates(certificates)

        summary_parts = [f"总计: {categorized['total']} 个证书"]

        if categorized['expired']:
            summary_parts.append(f"已过期: {len(categorized['expired'])} 个")

        if categorized['expiring_soon']:
            summary_parts.append(f"即将过期({self.warning_days}天内): {len(categorized['expiring_soon'])} 个")

        if categorized['healthy']:
            summary_parts.append(f"健康: {len(categorized['healthy'])} 个")

        return ", ".join(summary_parts)
