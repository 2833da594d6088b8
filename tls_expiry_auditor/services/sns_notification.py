"""
SNS通知服务
"""
import os
from typing import List, Optional, Tuple
import logging
from datetime import datetime, timezone

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..models import CertificateFacts
from .expiry_calculator import ExpiryCalculator
from .reporter import format_timestamp


class SNSNotificationService:
    """SNS审计报告发送服务"""

    def __init__(self, topic_arn: Optional[str] = None, region_name: Optional[str] = None):
        """
        初始化SNS通知服务

        Args:
            topic_arn: SNS主题ARN，如果为None则从环境变量读取
            region_name: AWS区域名称，如果为None则自动检测
        """
        self.topic_arn = topic_arn or os.getenv('SNS_TOPIC_ARN')

        # 自动检测区域
        if region_name:
            self.region_name = region_name
        elif self.topic_arn and self.topic_arn.startswith('arn:aws:sns:'):
            # 从SNS ARN中提取区域
            self.region_name = self.topic_arn.split(':')[3]
        else:
            self.region_name = os.getenv('AWS_REGION', 'us-east-1')

        self.logger = logging.getLogger(__name__)

        # 未配置主题时不创建客户端
        self.sns_client = None
        if self.topic_arn:
            self.sns_client = boto3.client('sns', region_name=self.region_name)
            self.logger.info(f"SNS客户端初始化成功，区域: {self.region_name}")

    @property
    def is_enabled(self) -> bool:
        return self.sns_client is not None and bool(self.topic_arn)

    def send_audit_report(self, certificates: List[CertificateFacts],
                          failures: List[Tuple[str, str]],
                          execution_summary: dict,
                          warning_days: int = 30) -> bool:
        """
        发送审计报告

        Args:
            certificates: 成功探测的证书信息
            failures: 失败端点列表 (endpoint, 错误信息)
            execution_summary: 执行摘要
            warning_days: 即将过期的警告天数

        Returns:
            bool: 发送是否成功
        """
        if not self.is_enabled:
            self.logger.error("SNS主题ARN未配置，无法发送审计报告")
            return False

        calculator = ExpiryCalculator(warning_days=warning_days)
        categorized = calculator.categorize_certificates(certificates)

        subject = self._format_subject(categorized, failures)
        message = self.format_report_content(categorized, failures, execution_summary, warning_days)

        return self._publish(subject, message)

    def _publish(self, subject: str, message: str) -> bool:
        """
        发布SNS消息

        Args:
            subject: 消息主题
            message: 消息内容

        Returns:
            bool: 发送是否成功
        """
        try:
            response = self.sns_client.publish(
                TopicArn=self.topic_arn,
                Subject=subject,
                Message=message
            )
        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            self.logger.error(f"SNS发送失败 - {error_code}: {error_message}")
            return False
        except BotoCoreError as e:
            self.logger.error(f"发送SNS通知时发生错误: {str(e)}")
            return False

        self.logger.info(f"SNS通知发送成功，MessageId: {response.get('MessageId')}")
        return True

    def _format_subject(self, categorized: dict, failures: List[Tuple[str, str]]) -> str:
        """
        格式化消息主题（SNS主题长度上限为100个字符）

        Args:
            categorized: ExpiryCalculator 分类结果
            failures: 失败端点列表

        Returns:
            str: 消息主题
        """
        expired_count = len(categorized['expired'])
        expiring_count = len(categorized['expiring_soon'])
        total = categorized['total'] + len(failures)

        if expired_count > 0:
            subject = f"🚨 TLS证书审计: {expired_count}个已过期 | {total}个端点"
        elif expiring_count > 0:
            subject = f"⚠️ TLS证书审计: {expiring_count}个即将过期 | {total}个端点"
        elif failures:
            subject = f"❌ TLS证书审计: {len(failures)}个端点探测失败 | {total}个端点"
        else:
            subject = f"✅ TLS证书审计: 全部正常 | {total}个端点"

        return subject[:100]

    def format_report_content(self, categorized: dict, failures: List[Tuple[str, str]],
                              execution_summary: dict, warning_days: int = 30) -> str:
        """
        格式化审计报告内容

        Args:
            categorized: ExpiryCalculator 分类结果
            failures: 失败端点列表
            execution_summary: 执行摘要
            warning_days: 即将过期的警告天数

        Returns:
            str: 格式化的报告内容
        """
        lines = [
            "TLS证书审计报告",
            "=" * 40,
            f"检查时间: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC",
            f"执行时长: {execution_summary.get('duration_seconds', 0):.2f} 秒",
            f"总端点数: {execution_summary.get('total_endpoints', 0)}",
            f"成功探测: {execution_summary.get('successful_probes', 0)}",
            f"失败探测: {execution_summary.get('failed_probes', 0)}",
            ""
        ]

        if categorized['expired']:
            lines.extend([
                "🚨 已过期证书 (需要立即处理):",
                "-" * 30
            ])
            for facts in categorized['expired']:
                lines.append(f"• {facts.server}:{facts.port}")
                lines.append(f"  过期时间: {format_timestamp(facts.expires_on)}")
                lines.append(f"  TLS版本: {facts.tls_version}")
                lines.append("")

        if categorized['expiring_soon']:
            lines.extend([
                f"⚠️  即将过期证书 ({warning_days}天内):",
                "-" * 30
            ])
            for facts in categorized['expiring_soon']:
                lines.append(f"• {facts.server}:{facts.port}")
                lines.append(f"  过期时间: {format_timestamp(facts.expires_on)}")
                lines.append(f"  剩余天数: {facts.days_until_expiry()} 天")
                lines.append(f"  TLS版本: {facts.tls_version}")
                lines.append("")

        if failures:
            lines.extend([
                "❌ 探测失败的端点:",
                "-" * 30
            ])
            for endpoint, error_message in failures:
                lines.append(f"• {endpoint}")
                lines.append(f"  错误: {error_message}")
                lines.append("")

        if categorized['healthy']:
            lines.extend([
                "✅ 正常证书:",
                "-" * 30
            ])
            for facts in categorized['healthy']:
                lines.append(
                    f"• {facts.server}:{facts.port} - TLS {facts.tls_version}, "
                    f"{facts.days_until_expiry()}天后过期"
                )
            lines.append("")

        lines.extend([
            "📊 统计摘要:",
            "-" * 30,
            f"🚨 已过期: {len(categorized['expired'])} 个",
            f"⚠️  即将过期: {len(categorized['expiring_soon'])} 个",
            f"✅ 正常: {len(categorized['healthy'])} 个",
            f"❌ 探测失败: {len(failures)} 个",
            "",
            "---",
            "此报告由TLS证书审计工具自动生成"
        ])

        return "\n".join(lines)
