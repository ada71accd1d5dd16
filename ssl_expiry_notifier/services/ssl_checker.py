"""
SSL证书检查服务
"""
import ssl
import socket
from datetime import datetime, timezone
from typing import Optional
import logging

from ..interfaces import SSLCertificateCheckerInterface
from ..models import CheckOutcome, CheckStatus
from .error_handler import CertificateUnavailableError, MonitorError, NetworkErrorHandler
from .expiry_calculator import ExpiryCalculator


class SSLCertificateChecker(SSLCertificateCheckerInterface):
    """SSL证书检查器实现"""

    def __init__(self, port: int = 443, warning_days: int = 30, timeout: Optional[float] = None):
        """
        初始化SSL证书检查器

        Args:
            port: SSL端口，默认443
            warning_days: 提前告警天数，默认30天
            timeout: 连接超时时间（秒），为None时使用socket默认值
        """
        self.port = port
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
        self.error_handler = NetworkErrorHandler()
        self.expiry_calculator = ExpiryCalculator(warning_days=warning_days)

    def check_certificate(self, host: str) -> CheckOutcome:
        """
        检查单个主机的SSL证书

        只进行一次握手，不重试；网络错误不会抛出，而是归类到返回结果中

        Args:
            host: 主机名（不含协议和端口）

        Returns:
            CheckOutcome: 检查结果
        """
        host = (host or "").strip()

        try:
            cert = self._get_ssl_certificate(host)
            expiry_date = self._parse_expiry_date(cert)
        except (OSError, ValueError, MonitorError) as e:
            error_info = self.error_handler.handle_ssl_connection_error(host, e)
            return CheckOutcome(
                status=error_info['status'],
                detail=error_info['error_message'],
                suggested_action=error_info['suggested_action']
            )

        days_until_expiry = self.expiry_calculator.calculate_days_until_expiry(expiry_date)

        if self.expiry_calculator.is_expiring_soon(days_until_expiry):
            return CheckOutcome(
                status=CheckStatus.CERTIFICATE_EXPIRING_SOON,
                days_remaining=days_until_expiry,
                expiry_date=expiry_date,
                detail=f"certificate expires in {days_until_expiry} days"
            )

        return CheckOutcome(
            status=CheckStatus.OK,
            days_remaining=days_until_expiry,
            expiry_date=expiry_date
        )

    def _get_ssl_certificate(self, host: str) -> dict:
        """
        获取对端的叶子证书

        Args:
            host: 主机名

        Returns:
            dict: SSL证书信息

        Raises:
            OSError: 连接或握手失败
            CertificateUnavailableError: 对端没有提供证书
        """
        if not host:
            raise ValueError("主机名为空")

        context = ssl.create_default_context()

        connect_kwargs = {}
        if self.timeout is not None:
            connect_kwargs['timeout'] = self.timeout

        with socket.create_connection((host, self.port), **connect_kwargs) as sock:
            with context.wrap_socket(sock, server_hostname=host) as ssock:
                cert = ssock.getpeercert()

        if not cert:
            raise CertificateUnavailableError(f"无法获取主机 {host} 的SSL证书")

        return cert

    def _parse_expiry_date(self, cert: dict) -> datetime:
        """
        解析证书过期时间

        Args:
            cert: SSL证书信息

        Returns:
            datetime: 过期时间（UTC）
        """
        not_after = cert.get('notAfter')
        if not not_after:
            raise CertificateUnavailableError("证书中未找到过期时间信息")

        # 时间格式：'Dec 31 23:59:59 2024 GMT'
        expiry_date = datetime.strptime(not_after, '%b %d %H:%M:%S %Y %Z')
        return expiry_date.replace(tzinfo=timezone.utc)
