"""
错误处理服务
"""
import socket
import ssl
from typing import Any, Dict, List
from datetime import datetime, timezone
import logging

from ..errors import HandshakeFailed, MalformedEndpoint


class ProbeErrorHandler:
    """探测错误分类器（不做重试，只描述错误和建议）"""

    def __init__(self):
        """初始化探测错误分类器"""
        self.logger = logging.getLogger(__name__)

    def describe(self, endpoint: str, error: Exception) -> Dict[str, Any]:
        """
        描述单个端点的错误

        Args:
            endpoint: 端点
            error: 异常对象（通常是 ProbeError）

        Returns:
            Dict[str, Any]: 错误信息
        """
        cause = self._root_cause(error)
        self.logger.debug(f"端点 {endpoint} 错误分类: {type(error).__name__} <- {type(cause).__name__}")

        return {
            'endpoint': endpoint,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'cause_type': type(cause).__name__,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(error)
        }

    def _root_cause(self, error: Exception) -> BaseException:
        if isinstance(error, HandshakeFailed):
            return error.cause
        return error

    def _get_suggested_action(self, error: Exception) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        if isinstance(error, MalformedEndpoint):
            return "检查端点格式，应为 host:port"

        cause = self._root_cause(error)
        cause_message = str(cause).lower()

        if isinstance(cause, socket.timeout):
            return "检查网络连接，考虑增加超时时间"
        elif isinstance(cause, socket.gaierror):
            return "检查主机名是否正确，DNS服务器是否可用"
        elif isinstance(cause, ConnectionRefusedError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(cause, ssl.SSLError):
            if 'wrong version number' in cause_message or 'unsupported protocol' in cause_message:
                return "服务器可能未启用TLS，检查端口是否为TLS端口"
            elif 'handshake failure' in cause_message:
                return "SSL握手失败，检查SSL/TLS版本兼容性"
            else:
                return "SSL连接问题，检查服务器SSL配置"
        elif isinstance(cause, ValueError):
            return "服务器证书无法解析，检查证书格式"
        elif 'network is unreachable' in cause_message:
            return "网络不可达，检查网络连接和路由"
        elif 'no route to host' in cause_message:
            return "无法路由到主机，检查防火墙和网络配置"
        else:
            return "检查网络连接和服务器状态"

    def get_error_statistics(self, error_list: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        获取错误统计信息

        Args:
            error_list: describe() 返回的错误信息列表

        Returns:
            Dict[str, Any]: 错误统计
        """
        if not error_list:
            return {
                'total_errors': 0,
                'error_types': {},
                'cause_types': {},
                'most_common_error': None,
                'most_common_error_count': 0
            }

        error_types = {}
        cause_types = {}

        for error_info in error_list:
            error_type = error_info.get('error_type', 'Unknown')
            error_types[error_type] = error_types.get(error_type, 0) + 1

            cause_type = error_info.get('cause_type', 'Unknown')
            cause_types[cause_type] = cause_types.get(cause_type, 0) + 1

        most_common_error = max(error_types.items(), key=lambda x: x[1])

        return {
            'total_errors': len(error_list),
            'error_types': error_types,
            'cause_types': cause_types,
            'most_common_error': most_common_error[0],
            'most_common_error_count': most_common_error[1]
        }

