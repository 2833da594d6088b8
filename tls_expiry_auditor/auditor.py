"""
TLS证书审计主流程
"""
import threading
import time
from typing import List, Optional, Tuple

from .interfaces import EndpointSourceInterface, ResultReporterInterface, TLSProbeInterface
from .models import AuditConfig, AuditResult, CertificateFacts, ProbeOutcome
from .services.dispatcher import BoundedDispatcher
from .services.endpoint_source import FileEndpointSource
from .services.expiry_calculator import ExpiryCalculator
from .services.logger import LoggerService
from .services.reporter import ConsoleReporter, format_probe_error
from .services.sns_notification import SNSNotificationService
from .services.tls_probe import TLSProbe


class TLSExpiryAuditor:
    """TLS证书审计器主类"""

    def __init__(self, config: AuditConfig,
                 source: Optional[EndpointSourceInterface] = None,
                 probe: Optional[TLSProbeInterface] = None,
                 reporter: Optional[ResultReporterInterface] = None,
                 logger_service: Optional[LoggerService] = None,
                 notification_service: Optional[SNSNotificationService] = None):
        """
        初始化审计器

        Args:
            config: 审计配置
            source: 端点来源，默认从 config.file_path 读取
            probe: TLS探测器
            reporter: 结果输出
            logger_service: 日志服务
            notification_service: SNS通知服务，默认仅在配置了主题ARN时创建
        """
        self.config = config
        self.logger_service = logger_service or LoggerService(
            log_level=config.log_level, warning_days=config.warning_days
        )
        self.source = source or FileEndpointSource(config.file_path)
        self.probe = probe or TLSProbe(timeout=config.timeout)
        self.reporter = reporter or ConsoleReporter()
        self.dispatcher = BoundedDispatcher(self.probe, config)
        self.expiry_calculator = ExpiryCalculator(warning_days=config.warning_days)

        if notification_service is None and config.sns_topic_arn:
            notification_service = SNSNotificationService(topic_arn=config.sns_topic_arn)
        self.notification_service = notification_service

        self._results_lock = threading.Lock()
        self._certificates: List[CertificateFacts] = []
        self._failures: List[Tuple[str, str]] = []

        self.logger_service.log_configuration_info(config)

    def execute(self) -> AuditResult:
        """
        执行TLS证书审计

        Returns:
            AuditResult: 审计结果

        Raises:
            InputSourceUnavailable: 端点列表无法打开或读取
        """
        start_time = time.monotonic()
        self.logger_service.log_audit_start(self.config)

        endpoints = self.source.iter_endpoints()
        dispatched = self.dispatcher.run(endpoints, self._on_outcome)

        self.reporter.finish()
        self.logger_service.log_audit_end()

        categorized = self.expiry_calculator.categorize_certificates(self._certificates)
        self.logger_service.logger.info(self.expiry_calculator.get_expiry_summary(self._certificates))

        self._send_report()
        self.logger_service.log_execution_summary()

        return AuditResult(
            total_endpoints=dispatched,
            successful_probes=len(self._certificates),
            failed_probes=len(self._failures),
            expiring_endpoints=categorized['expiring_soon'],
            expired_endpoints=categorized['expired'],
            errors=[format_probe_error(endpoint, message).rstrip("\n")
                    for endpoint, message in self._failures],
            execution_time=time.monotonic() - start_time
        )

    def _on_outcome(self, endpoint: str, outcome: ProbeOutcome):
        # 在探测线程中调用
        self.reporter.report(endpoint, outcome)
        self.logger_service.log_outcome(endpoint, outcome)

        with self._results_lock:
            if isinstance(outcome, CertificateFacts):
                self._certificates.append(outcome)
            else:
                self._failures.append((endpoint, str(outcome)))

    def _send_report(self) -> bool:
        """
        发送SNS审计报告（未配置时跳过）

        Returns:
            bool: 是否发送成功
        """
        if self.notification_service is None:
            return False

        success = self.notification_service.send_audit_report(
            self._certificates,
            self._failures,
            self.logger_service.get_execution_summary(),
            warning_days=self.config.warning_days
        )
        self.logger_service.log_notification_sent(
            "SNS", len(self._certificates) + len(self._failures), success
        )
        return success
