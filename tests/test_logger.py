"""
日志服务测试
"""
import os
import logging
import threading
from unittest.mock import patch
from datetime import datetime, timezone, timedelta
from io import StringIO

from tls_expiry_auditor.errors import HandshakeFailed, MalformedEndpoint
from tls_expiry_auditor.models import AuditConfig, CertificateFacts
from tls_expiry_auditor.services.logger import LoggerService


def make_facts(days: int) -> CertificateFacts:
    return CertificateFacts(
        server="example.test",
        port="443",
        tls_version="1.3",
        expires_on=datetime.now(timezone.utc) + timedelta(days=days, hours=1)
    )


class TestLoggerService:
    """日志服务测试类"""

    def setup_method(self):
        """测试前准备"""
        self.logger_service = LoggerService(logger_name="test_logger")

        # 创建一个字符串流来捕获日志输出
        self.log_stream = StringIO()
        handler = logging.StreamHandler(self.log_stream)
        handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))

        self.logger_service.logger.handlers.clear()
        self.logger_service.logger.addHandler(handler)
        self.logger_service.logger.setLevel(logging.DEBUG)

    def teardown_method(self):
        """测试后清理"""
        self.logger_service.reset_stats()

    def get_log_output(self) -> str:
        return self.log_stream.getvalue()

    def test_init_default_config(self):
        """测试默认配置初始化"""
        with patch.dict(os.environ, {}, clear=True):
            service = LoggerService()

        assert service.logger_name == "tls_expiry_auditor"
        assert service.log_level == "INFO"
        assert service.logger.propagate is False

    @patch.dict(os.environ, {'LOG_LEVEL': 'DEBUG'})
    def test_init_with_env_log_level(self):
        """测试从环境变量读取日志级别"""
        service = LoggerService(logger_name="env_logger")

        assert service.log_level == "DEBUG"
        assert service.logger.level == logging.DEBUG

    def test_log_audit_start(self):
        """测试记录审计开始"""
        self.logger_service.log_audit_start(AuditConfig(file_path="endpoints.txt", concurrency_limit=7))

        log_output = self.get_log_output()
        assert "开始TLS证书审计，端点列表: endpoints.txt，并发上限: 7" in log_output
        assert "审计开始时间:" in log_output
        assert self.logger_service.execution_stats['start_time'] is not None

    def test_log_outcome_healthy(self):
        """测试记录正常证书"""
        self.logger_service.log_outcome("example.test:443", make_facts(90))

        log_output = self.get_log_output()
        assert "INFO - 证书正常 - 端点: example.test:443" in log_output
        assert "TLS版本: 1.3" in log_output
        assert self.logger_service.execution_stats['successful_probes'] == 1

    def test_log_outcome_expiring(self):
        """测试记录即将过期证书"""
        self.logger_service.log_outcome("example.test:443", make_facts(10))

        log_output = self.get_log_output()
        assert "WARNING - 证书即将过期" in log_output
        assert "剩余天数: 10 天" in log_output

    def test_log_outcome_expired(self):
        """测试记录已过期证书"""
        facts = CertificateFacts("old.test", "443", "1.2", datetime.now(timezone.utc) - timedelta(days=3))

        self.logger_service.log_outcome("old.test:443", facts)

        assert "WARNING - 证书已过期 - 端点: old.test:443" in self.get_log_output()

    def test_log_outcome_error(self):
        """测试记录探测失败"""
        error = HandshakeFailed("unreachable.test:443", ConnectionRefusedError(111, "Connection refused"))

        self.logger_service.log_outcome("unreachable.test:443", error)

        log_output = self.get_log_output()
        assert "ERROR - 端点 unreachable.test:443 探测失败: HandshakeFailed" in log_output
        assert "建议: 检查目标服务器是否运行，端口是否正确" in log_output

        stats = self.logger_service.execution_stats
        assert stats['failed_probes'] == 1
        assert stats['total_endpoints'] == 1
        assert stats['errors'][0]['endpoint'] == "unreachable.test:443"

    def test_log_error_with_traceback(self):
        """测试记录带堆栈的错误"""
        try:
            raise MalformedEndpoint("bad host")
        except MalformedEndpoint as e:
            self.logger_service.log_error("bad host", e)

        assert "错误堆栈跟踪" in self.get_log_output()

    def test_concurrent_statistics(self):
        """测试并发更新统计"""
        def worker():
            for _ in range(200):
                self.logger_service.log_outcome("example.test:443", make_facts(90))
                self.logger_service.log_outcome("bad host", MalformedEndpoint("bad host"))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stats = self.logger_service.execution_stats
        assert stats['total_endpoints'] == 1600
        assert stats['successful_probes'] == 800
        assert stats['failed_probes'] == 800
        assert len(stats['errors']) == 800

    def test_log_audit_end(self):
        """测试记录审计结束"""
        self.logger_service.log_audit_start(AuditConfig(file_path="endpoints.txt"))
        self.logger_service.log_outcome("example.test:443", make_facts(90))
        self.logger_service.log_audit_end()

        log_output = self.get_log_output()
        assert "TLS证书审计完成" in log_output
        assert "总执行时间:" in log_output
        assert "审计统计: 总计 1 个端点, 成功 1 个, 失败 0 个" in log_output

    def test_log_configuration_info_masks_arn(self):
        """测试配置信息中的ARN被隐藏"""
        config = AuditConfig(
            file_path="endpoints.txt",
            sns_topic_arn="arn:aws:sns:us-east-1:123456789012:tls-audit"
        )

        self.logger_service.log_configuration_info(config)

        log_output = self.get_log_output()
        assert "file_path: endpoints.txt" in log_output
        assert "123456789012" in log_output
        assert "arn:aws:sns:***:123456789012:tls-audit" in log_output
        assert "us-east-1" not in log_output

    def test_log_notification_sent(self):
        """测试记录通知发送状态"""
        self.logger_service.log_notification_sent("SNS", 3, True)
        self.logger_service.log_notification_sent("SNS", 3, False)

        log_output = self.get_log_output()
        assert "SNS 审计报告发送成功，端点数量: 3" in log_output
        assert "SNS 审计报告发送失败，端点数量: 3" in log_output

    def test_get_execution_summary(self):
        """测试执行摘要"""
        self.logger_service.log_audit_start(AuditConfig(file_path="endpoints.txt"))
        self.logger_service.log_outcome("a.test:443", make_facts(90))
        self.logger_service.log_outcome("bad host", MalformedEndpoint("bad host"))
        self.logger_service.log_audit_end()

        summary = self.logger_service.get_execution_summary()

        assert summary['total_endpoints'] == 2
        assert summary['successful_probes'] == 1
        assert summary['failed_probes'] == 1
        assert summary['success_rate'] == 0.5
        assert summary['error_count'] == 1
        assert summary['error_statistics']['most_common_error'] == 'MalformedEndpoint'
        assert summary['duration_seconds'] >= 0

    def test_log_execution_summary_truncates_errors(self):
        """测试执行摘要最多显示5个错误"""
        for i in range(7):
            self.logger_service.log_outcome(f"bad{i}", MalformedEndpoint(f"bad{i}"))

        self.logger_service.log_execution_summary()

        log_output = self.get_log_output()
        assert "错误数量: 7" in log_output
        assert "... 还有 2 个错误" in log_output

    def test_reset_stats(self):
        """测试重置统计"""
        self.logger_service.log_outcome("a.test:443", make_facts(90))
        self.logger_service.reset_stats()

        assert self.logger_service.execution_stats['total_endpoints'] == 0
        assert self.logger_service.execution_stats['errors'] == []
