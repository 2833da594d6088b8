"""
配置验证服务
"""
import os
import re
import math
from typing import Dict, Any, Optional
import logging

from ..models import AuditConfig


SNS_TOPIC_ARN_PATTERN = r'^arn:aws:sns:[a-z0-9-]+:\d{12}:[a-zA-Z0-9_-]+$'
VALID_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


class ConfigValidator:
    """配置验证器"""

    def __init__(self):
        """初始化配置验证器"""
        self.logger = logging.getLogger(__name__)

        # 可选的环境变量
        self.optional_env_vars = {
            'SNS_TOPIC_ARN': 'SNS主题ARN（审计报告）',
            'LOG_LEVEL': '日志级别',
            'AWS_REGION': 'AWS区域'
        }

    def validate_config(self, config: AuditConfig) -> Dict[str, Any]:
        """
        验证审计配置

        Args:
            config: 审计配置

        Returns:
            Dict[str, Any]: 验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': []
        }

        if not config.file_path:
            result['errors'].append("缺少端点列表文件路径 (-file)")
        elif not os.path.isfile(config.file_path):
            # 文件打开失败由端点来源负责报告
            result['warnings'].append(f"端点列表文件不存在或不是普通文件: {config.file_path}")

        if not isinstance(config.concurrency_limit, int) or config.concurrency_limit < 1:
            result['errors'].append(f"并发上限必须是正整数: {config.concurrency_limit}")
        elif config.concurrency_limit > 1000:
            result['warnings'].append(f"并发上限过大: {config.concurrency_limit}，可能耗尽文件描述符")

        if not math.isfinite(config.timeout) or config.timeout <= 0:
            result['errors'].append(f"超时时间必须是大于0的有限数: {config.timeout}")
        elif config.timeout > 120:
            result['warnings'].append(f"超时时间过长: {config.timeout}秒")

        if config.warning_days < 0:
            result['errors'].append(f"警告天数不能为负数: {config.warning_days}")

        if config.log_level.upper() not in VALID_LOG_LEVELS:
            result['warnings'].append(f"日志级别无效: {config.log_level}，将使用INFO")

        if config.sns_topic_arn:
            sns_validation = self.validate_sns_topic_arn(config.sns_topic_arn)
            result['errors'].extend(sns_validation['errors'])

        result['is_valid'] = not result['errors']

        for error in result['errors']:
            self.logger.error(f"配置错误: {error}")
        for warning in result['warnings']:
            self.logger.warning(f"配置警告: {warning}")

        return result

    def validate_environment_variables(self) -> Dict[str, Any]:
        """
        检查可选的环境变量

        Returns:
            Dict[str, Any]: 环境变量检查结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'missing_optional': [],
            'present_vars': {}
        }

        for var_name, description in self.optional_env_vars.items():
            value = os.getenv(var_name)
            if not value:
                result['missing_optional'].append({
                    'name': var_name,
                    'description': description
                })
            else:
                result['present_vars'][var_name] = self._sanitize_env_value(var_name, value)

        return result

    def validate_sns_topic_arn(self, topic_arn: str) -> Dict[str, Any]:
        """
        验证SNS主题ARN格式

        Args:
            topic_arn: SNS主题ARN

        Returns:
            Dict[str, Any]: 验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'topic_arn': topic_arn,
            'arn_format_valid': False
        }

        if re.match(SNS_TOPIC_ARN_PATTERN, topic_arn):
            result['arn_format_valid'] = True
        else:
            result['is_valid'] = False
            result['errors'].append(f"SNS主题ARN格式无效: {topic_arn}")

        return result

    def _sanitize_env_value(self, var_name: str, value: str) -> str:
        """
        清理环境变量值（隐藏敏感信息）

        Args:
            var_name: 变量名
            value: 变量值

        Returns:
            str: 清理后的值
        """
        if var_name == 'SNS_TOPIC_ARN' and value.startswith('arn:'):
            # ARN类型，只显示前缀和后缀
            parts = value.split(':')
            if len(parts) >= 6:
                return f"{':'.join(parts[:3])}:***:{parts[-2]}:{parts[-1]}"
            return "***"

        return value

    def get_configuration_summary(self, config: AuditConfig,
                                  validation_result: Optional[Dict[str, Any]] = None) -> str:
        """
        获取配置摘要

        Args:
            config: 审计配置
            validation_result: 已有的验证结果，为空时重新验证

        Returns:
            str: 配置摘要文本
        """
        if validation_result is None:
            validation_result = self.validate_config(config)
        env_result = self.validate_environment_variables()

        lines = [
            "配置验证摘要",
            "=" * 30
        ]

        if validation_result['is_valid']:
            lines.append("✅ 配置验证通过")
        else:
            lines.append("❌ 配置验证失败")

        if validation_result['errors']:
            lines.append("\n错误:")
            for error in validation_result['errors']:
                lines.append(f"  • {error}")

        if validation_result['warnings']:
            lines.append("\n警告:")
            for warning in validation_result['warnings']:
                lines.append(f"  • {warning}")

        lines.append("\n配置详情:")
        lines.append(f"  端点列表: {config.file_path}")
        lines.append(f"  并发上限: {config.concurrency_limit}")
        lines.append(f"  超时时间: {config.timeout} 秒")
        lines.append(f"  警告天数: {config.warning_days}")

        if env_result['present_vars']:
            lines.append("  环境变量:")
            for var_name, var_value in env_result['present_vars'].items():
                lines.append(f"    {var_name}: {var_value}")

        return "\n".join(lines)
