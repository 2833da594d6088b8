"""
日志服务
"""
import os
import logging
import threading
import traceback
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from ..interfaces import LoggerServiceInterface
from ..models import AuditConfig, CertificateFacts, ProbeOutcome
from .error_handler import ProbeErrorHandler


class LoggerService(LoggerServiceInterface):
    """日志服务实现（可被多个探测线程同时调用）"""

    def __init__(self, logger_name: str = "tls_expiry_auditor", log_level: Optional[str] = None,
                 warning_days: int = 30):
        """
        初始化日志服务

        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
            warning_days: 证书即将过期的警告天数
        """
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')
        self.warning_days = warning_days
        self.error_handler = ProbeErrorHandler()

        # 配置日志器
        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        self._stats_lock = threading.Lock()
        self.execution_stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            'start_time': None,
            'end_time': None,
            'total_endpoints': 0,
            'successful_probes': 0,
            'failed_probes': 0,
            'errors': []
        }

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        self.logger.setLevel(level)

        # 避免重复添加处理器
        if not self.logger.handlers:
            # 输出到标准错误，标准输出留给审计报告
            handler = logging.StreamHandler()
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)

        # 防止日志传播到根日志器
        self.logger.propagate = False

    def log_audit_start(self, config: AuditConfig):
        """
        记录审计开始

        Args:
            config: 审计配置
        """
        with self._stats_lock:
            self.execution_stats['start_time'] = datetime.now(timezone.utc)

        self.logger.info(
            f"开始TLS证书审计，端点列表: {config.file_path}，并发上限: {config.concurrency_limit}"
        )
        self.logger.info(f"审计开始时间: {self.execution_stats['start_time'].isoformat()}")

    def log_outcome(self, endpoint: str, outcome: ProbeOutcome):
        """
        记录单个端点的结果

        Args:
            endpoint: 端点
            outcome: 探测结果（证书信息或 ProbeError）
        """
        if not isinstance(outcome, CertificateFacts):
            self.log_error(endpoint, outcome)
            return

        with self._stats_lock:
            self.execution_stats['total_endpoints'] += 1
            self.execution_stats['successful_probes'] += 1

        days = outcome.days_until_expiry()
        if outcome.is_expired():
            self.logger.warning(
                f"证书已过期 - 端点: {endpoint}, "
                f"TLS版本: {outcome.tls_version}, "
                f"过期时间: {outcome.expires_on.isoformat()}"
            )
        elif outcome.is_expiring_soon(self.warning_days):
            self.logger.warning(
                f"证书即将过期 - 端点: {endpoint}, "
                f"TLS版本: {outcome.tls_version}, "
                f"过期时间: {outcome.expires_on.isoformat()}, "
                f"剩余天数: {days} 天"
            )
        else:
            self.logger.info(
                f"证书正常 - 端点: {endpoint}, "
                f"TLS版本: {outcome.tls_version}, "
                f"过期时间: {outcome.expires_on.isoformat()}, "
                f"剩余天数: {days} 天"
            )

    def log_error(self, endpoint: str, error: Exception):
        """
        记录错误信息

        Args:
            endpoint: 端点
            error: 异常对象
        """
        error_info = self.error_handler.describe(endpoint, error)

        with self._stats_lock:
            self.execution_stats['total_endpoints'] += 1
            self.execution_stats['failed_probes'] += 1
            self.execution_stats['errors'].append(error_info)

        self.logger.error(
            f"端点 {endpoint} 探测失败: {error_info['error_type']}: {error_info['error_message']}"
            f"（建议: {error_info['suggested_action']}）"
        )

        if error.__traceback__ is not None:
            self.logger.debug(
                f"端点 {endpoint} 错误堆栈跟踪:\n"
                f"{''.join(traceback.format_exception(type(error), error, error.__traceback__))}"
            )

    def log_audit_end(self):
        """记录审计结束"""
        with self._stats_lock:
            self.execution_stats['end_time'] = datetime.now(timezone.utc)
            stats = dict(self.execution_stats)

        if stats['start_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()
        else:
            duration = 0

        self.logger.info("TLS证书审计完成")
        self.logger.info(f"审计结束时间: {stats['end_time'].isoformat()}")
        self.logger.info(f"总执行时间: {duration:.2f} 秒")
        self.logger.info(
            f"审计统计: 总计 {stats['total_endpoints']} 个端点, "
            f"成功 {stats['successful_probes']} 个, "
            f"失败 {stats['failed_probes']} 个"
        )

    def log_notification_sent(self, notification_type: str, endpoint_count: int, success: bool):
        """
        记录通知发送状态

        Args:
            notification_type: 通知类型（如 "SNS"）
            endpoint_count: 报告中的端点数量
            success: 是否发送成功
        """
        if success:
            self.logger.info(f"{notification_type} 审计报告发送成功，端点数量: {endpoint_count}")
        else:
            self.logger.error(f"{notification_type} 审计报告发送失败，端点数量: {endpoint_count}")

    def log_configuration_info(self, config: AuditConfig):
        """
        记录配置信息

        Args:
            config: 审计配置
        """
        safe_config = self._sanitize_config(asdict(config))

        self.logger.info("审计配置信息:")
        for key, value in safe_config.items():
            self.logger.info(f"  {key}: {value}")

    def _sanitize_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        清理配置信息中的敏感数据

        Args:
            config: 原始配置

        Returns:
            Dict[str, Any]: 清理后的配置
        """
        safe_config = {}
        for key, value in config.items():
            key_lower = key.lower()

            is_sensitive = (
                key_lower == 'sns_topic_arn' or
                key_lower.endswith('_key') or
                key_lower.endswith('_secret') or
                key_lower.endswith('_password') or
                key_lower.endswith('_token')
            )

            if is_sensitive and isinstance(value, str) and value:
                if 'arn:' in value:
                    # ARN类型，只显示前缀和后缀
                    parts = value.split(':')
                    if len(parts) >= 6:
                        safe_value = f"{':'.join(parts[:3])}:***:{parts[-2]}:{parts[-1]}"
                    else:
                        safe_value = "***"
                else:
                    safe_value = value[:3] + "***" if len(value) > 3 else "***"
                safe_config[key] = safe_value
            else:
                safe_config[key] = value

        return safe_config

    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要

        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        with self._stats_lock:
            stats = dict(self.execution_stats)
            errors = list(stats['errors'])

        duration = 0
        if stats['start_time'] and stats['end_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()

        return {
            'start_time': stats['start_time'].isoformat() if stats['start_time'] else None,
            'end_time': stats['end_time'].isoformat() if stats['end_time'] else None,
            'duration_seconds': duration,
            'total_endpoints': stats['total_endpoints'],
            'successful_probes': stats['successful_probes'],
            'failed_probes': stats['failed_probes'],
            'success_rate': (
                stats['successful_probes'] / stats['total_endpoints']
                if stats['total_endpoints'] > 0 else 0
            ),
            'error_count': len(errors),
            'error_statistics': self.error_handler.get_error_statistics(errors),
            'errors': errors
        }

    def log_execution_summary(self):
        """记录执行摘要"""
        summary = self.get_execution_summary()

        self.logger.info("=" * 50)
        self.logger.info("执行摘要")
        self.logger.info("=" * 50)

        if summary['start_time']:
            self.logger.info(f"开始时间: {summary['start_time']}")
        if summary['end_time']:
            self.logger.info(f"结束时间: {summary['end_time']}")

        self.logger.info(f"执行时长: {summary['duration_seconds']:.2f} 秒")
        self.logger.info(f"总端点数: {summary['total_endpoints']}")
        self.logger.info(f"成功探测: {summary['successful_probes']}")
        self.logger.info(f"失败探测: {summary['failed_probes']}")
        self.logger.info(f"成功率: {summary['success_rate']:.1%}")

        if summary['errors']:
            self.logger.info(f"错误数量: {summary['error_count']}")
            self.logger.info(f"最常见错误: {summary['error_statistics']['most_common_error']}")
            for i, error in enumerate(summary['errors'][:5], 1):  # 只显示前5个错误
                self.logger.info(f"  错误 {i}: {error['endpoint']} - {error['error_type']}: {error['error_message']}")

            if len(summary['errors']) > 5:
                self.logger.info(f"  ... 还有 {len(summary['errors']) - 5} 个错误")

        self.logger.info("=" * 50)

    def reset_stats(self):
        """重置执行统计"""
        with self._stats_lock:
            self.execution_stats = self._empty_stats()
