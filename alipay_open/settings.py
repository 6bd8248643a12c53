"""
SDK 配置：从环境变量（及 .env 文件）读取支付宝应用凭证，并提供日志初始化。

环境变量：
- ALIPAY_APP_ID: 应用 ID
- ALIPAY_PRIVATE_KEY / ALIPAY_PRIVATE_KEY_PATH: 应用私钥内容或文件路径
- ALIPAY_PUBLIC_KEY / ALIPAY_PUBLIC_KEY_PATH: 支付宝公钥内容或文件路径
- ALIPAY_APP_CERT_PATH: 应用公钥证书路径（公钥证书模式）
- ALIPAY_ROOT_CERT_PATH: 支付宝根证书路径（公钥证书模式）
- ALIPAY_SANDBOX: "1" / "true" 时使用沙箱网关
- ALIPAY_TIMEOUT: HTTP 超时秒数，默认 10
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from alipay_open.exceptions import ConfigError, IoError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: int = logging.INFO) -> None:
    """初始化根日志配置，供脚本或应用入口调用。"""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=True,
    )


def read_text_file(path: str | Path) -> str:
    """读取密钥或证书文件内容。"""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise IoError(f"无法读取文件 {path}: {e}") from e


@dataclass
class AlipaySettings:
    app_id: str
    private_key: str
    public_key: str
    app_cert: str | None = None
    root_cert: str | None = None
    sandbox: bool = False
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> "AlipaySettings":
        """
        加载 .env 后从环境变量构建配置。

        Raises:
            ConfigError: 必填项缺失或取值非法。
            IoError: 指定的密钥/证书文件无法读取。
        """
        load_dotenv(dotenv_path)

        app_id = os.getenv("ALIPAY_APP_ID", "").strip()
        if not app_id:
            raise ConfigError("缺少 ALIPAY_APP_ID")

        private_key = _value_or_file("ALIPAY_PRIVATE_KEY")
        if not private_key:
            raise ConfigError("缺少 ALIPAY_PRIVATE_KEY 或 ALIPAY_PRIVATE_KEY_PATH")

        public_key = _value_or_file("ALIPAY_PUBLIC_KEY")
        if not public_key:
            raise ConfigError("缺少 ALIPAY_PUBLIC_KEY 或 ALIPAY_PUBLIC_KEY_PATH")

        app_cert_path = os.getenv("ALIPAY_APP_CERT_PATH")
        root_cert_path = os.getenv("ALIPAY_ROOT_CERT_PATH")

        timeout_raw = os.getenv("ALIPAY_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ConfigError(f"ALIPAY_TIMEOUT 不是合法数字: {timeout_raw}")

        settings = cls(
            app_id=app_id,
            private_key=private_key,
            public_key=public_key,
            app_cert=read_text_file(app_cert_path) if app_cert_path else None,
            root_cert=read_text_file(root_cert_path) if root_cert_path else None,
            sandbox=os.getenv("ALIPAY_SANDBOX", "0").lower() in ("1", "true"),
            timeout=timeout,
        )
        logger.info(
            "已加载支付宝配置: app_id=%s, sandbox=%s, 证书模式=%s",
            settings.app_id, settings.sandbox, settings.app_cert is not None,
        )
        return settings


def _value_or_file(name: str) -> str | None:
    """优先读取 NAME，其次读取 NAME_PATH 指向的文件。"""
    value = os.getenv(name)
    if value and value.strip():
        return value.strip()
    path = os.getenv(f"{name}_PATH")
    if path:
        return read_text_file(path).strip()
    return None
