"""
测试公共夹具
"""
import pytest
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def build_self_signed_certificate(not_after: datetime, common_name: str = "example.test"):
    """生成自签名证书及其私钥"""
    not_after = not_after.replace(microsecond=0)
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    not_before = min(not_after, datetime.now(timezone.utc)) - timedelta(days=90)

    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    return cert, key


@pytest.fixture
def make_certificate_der():
    """生成指定过期时间的自签名证书（DER格式）"""

    def _make(not_after: datetime, common_name: str = "example.test") -> bytes:
        cert, _ = build_self_signed_certificate(not_after, common_name)
        return cert.public_bytes(serialization.Encoding.DER)

    return _make


@pytest.fixture
def make_certificate_files(tmp_path):
    """生成指定过期时间的证书和私钥PEM文件，供本地TLS服务器加载"""

    def _make(not_after: datetime, common_name: str = "localhost"):
        cert, key = build_self_signed_certificate(not_after, common_name)
        cert_path = tmp_path / "server.crt"
        key_path = tmp_path / "server.key"
        cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
        key_path.write_bytes(key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption()
        ))
        return str(cert_path), str(key_path)

    return _make
