"""
证书序列号工具：公钥证书模式下计算 app_cert_sn 和 alipay_root_cert_sn。

序列号 = MD5(签发者名称 + 十进制证书序列号) 的十六进制串。
签发者名称按 RFC 4514 形式输出（CN=...,OU=...,O=...,C=...）。
根证书文件包含多张证书，只取 RSA 签名的证书，结果用 "_" 连接。
"""

import hashlib
import logging
from pathlib import Path

from cryptography import x509
from cryptography.x509.oid import SignatureAlgorithmOID

from alipay_open.exceptions import CertificateError
from alipay_open.settings import read_text_file

logger = logging.getLogger(__name__)

CERTIFICATE_END = "-----END CERTIFICATE-----"

_RSA_SIGNATURE_OIDS = {
    SignatureAlgorithmOID.RSA_WITH_SHA1,
    SignatureAlgorithmOID.RSA_WITH_SHA256,
}


def _load_cert(pem: str | bytes) -> x509.Certificate:
    if isinstance(pem, str):
        pem = pem.encode("utf-8")
    try:
        return x509.load_pem_x509_certificate(pem)
    except (ValueError, TypeError) as e:
        raise CertificateError(f"无法解析证书: {e}") from e


def _fingerprint(cert: x509.Certificate) -> str:
    issuer = cert.issuer.rfc4514_string()
    return hashlib.md5(
        (issuer + str(cert.serial_number)).encode("utf-8")
    ).hexdigest()


def get_cert_sn(pem: str | bytes) -> str:
    """计算应用公钥证书序列号。"""
    return _fingerprint(_load_cert(pem))


def get_root_cert_sn(pem_bundle: str) -> str:
    """计算支付宝根证书序列号。"""
    sns = []
    for chunk in pem_bundle.split(CERTIFICATE_END):
        if not chunk.strip():
            continue
        cert = _load_cert(chunk.strip() + "\n" + CERTIFICATE_END)
        if cert.signature_algorithm_oid not in _RSA_SIGNATURE_OIDS:
            logger.debug("跳过非 RSA 签名的根证书: %s", cert.subject.rfc4514_string())
            continue
        sns.append(_fingerprint(cert))
    if not sns:
        raise CertificateError("根证书中没有可用的 RSA 证书")
    return "_".join(sns)


def get_cert_sn_from_path(path: str | Path) -> str:
    return get_cert_sn(read_text_file(path))


def get_root_cert_sn_from_path(path: str | Path) -> str:
    return get_root_cert_sn(read_text_file(path))
