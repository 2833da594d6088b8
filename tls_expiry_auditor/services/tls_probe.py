"""
TLS探测服务
"""
import re
import ssl
import socket
import logging
from datetime import datetime
from typing import Optional, Tuple

from cryptography import x509

from ..errors import HandshakeFailed, MalformedEndpoint
from ..interfaces import TLSProbeInterface
from ..models import CertificateFacts, normalize_tls_version


_NUMERIC_PORT = re.compile(r'^[0-9]+$')
_SERVICE_NAME = re.compile(r'^[A-Za-z][A-Za-z0-9-]*$')


def parse_endpoint(endpoint: str) -> Tuple[str, str]:
    """
    拆分 host:port 端点

    支持 [IPv6]:port 形式，端口可以是数字或服务名（如 https）。

    Args:
        endpoint: 端点字符串

    Returns:
        Tuple[str, str]: (主机, 端口)

    Raises:
        MalformedEndpoint: 格式无效
    """
    if not isinstance(endpoint, str):
        raise MalformedEndpoint(str(endpoint), "not a string")

    if endpoint.startswith('['):
        end = endpoint.find(']')
        if end == -1:
            raise MalformedEndpoint(endpoint, "missing ']' in address")
        if endpoint[end + 1:end + 2] != ':':
            raise MalformedEndpoint(endpoint, "missing port in address")
        host, port = endpoint[1:end], endpoint[end + 2:]
    else:
        host, sep, port = endpoint.rpartition(':')
        if not sep:
            raise MalformedEndpoint(endpoint, "missing port in address")
        if ':' in host:
            raise MalformedEndpoint(endpoint, "too many colons in address")

    if not host:
        raise MalformedEndpoint(endpoint, "missing host")
    if any(ch.isspace() for ch in host):
        raise MalformedEndpoint(endpoint, "whitespace in host")

    if _NUMERIC_PORT.match(port):
        if not 0 < int(port) <= 65535:
            raise MalformedEndpoint(endpoint, f"port out of range: {port}")
    elif not _SERVICE_NAME.match(port):
        raise MalformedEndpoint(endpoint, f"invalid port: {port!r}")

    return host, port


class TLSProbe(TLSProbeInterface):
    """TLS探测器实现：一次连接、一次握手、读取叶子证书"""

    def __init__(self, timeout: float = 10.0):
        """
        初始化TLS探测器

        Args:
            timeout: 连接和握手的超时时间（秒）
        """
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def probe(self, endpoint: str) -> CertificateFacts:
        """
        探测单个端点

        Args:
            endpoint: host:port 端点

        Returns:
            CertificateFacts: 协商的协议版本和叶子证书过期时间

        Raises:
            MalformedEndpoint: 端点格式无效（不会发起网络连接）
            HandshakeFailed: 连接、握手失败或超时
        """
        host, port = parse_endpoint(endpoint)

        try:
            cert_der, version = self._handshake(host, port)
        except (OSError, UnicodeError) as e:
            # ssl.SSLError 和 socket.timeout 都是 OSError 的子类
            self.logger.debug(f"端点 {endpoint} 握手失败: {type(e).__name__}: {str(e)}")
            raise HandshakeFailed(endpoint, e) from e

        if not cert_der:
            # 握手成功时服务器必然已提供证书
            raise RuntimeError(f"peer presented no certificate after handshake with {endpoint}")

        try:
            expires_on = self._parse_expiry_date(cert_der)
        except ValueError as e:
            raise HandshakeFailed(endpoint, e) from e

        facts = CertificateFacts(
            server=host,
            port=port,
            tls_version=normalize_tls_version(version),
            expires_on=expires_on
        )
        self.logger.debug(
            f"端点 {endpoint} 探测成功: TLS {facts.tls_version}, 过期时间 {expires_on.isoformat()}"
        )
        return facts

    def _create_context(self) -> ssl.SSLContext:
        """只用于检查证书，不做信任验证"""
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        context.minimum_version = ssl.TLSVersion.MINIMUM_SUPPORTED
        return context

    def _handshake(self, host: str, port: str) -> Tuple[Optional[bytes], Optional[str]]:
        """
        建立连接并完成TLS握手

        Args:
            host: 主机
            port: 端口（数字或服务名）

        Returns:
            Tuple: (DER格式的叶子证书, 协商的协议名称)
        """
        context = self._create_context()

        with socket.create_connection((host, port), timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=host) as ssock:
                return ssock.getpeercert(binary_form=True), ssock.version()

    def _parse_expiry_date(self, cert_der: bytes) -> datetime:
        """
        解析叶子证书的 notAfter

        Args:
            cert_der: DER格式证书

        Returns:
            datetime: UTC过期时间
        """
        cert = x509.load_der_x509_certificate(cert_der)
        return cert.not_valid_after_utc
