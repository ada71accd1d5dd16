"""
错误处理服务
"""
import re
import socket
import ssl
from typing import Any, Dict, Optional
import logging

from ..models import CheckStatus


class MonitorError(Exception):
    """证书监控错误基类"""


class ConfigLoadError(MonitorError):
    """配置文件无法读取或解析（致命错误）"""


class NotificationDeliveryError(MonitorError):
    """Webhook通知发送失败（非致命错误）"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CertificateUnavailableError(MonitorError):
    """握手成功但没有可用的叶子证书"""


# 对端未使用TLS协议时OpenSSL报告的错误原因
NOT_TLS_REASONS = frozenset({
    'WRONG_VERSION_NUMBER',
    'UNKNOWN_PROTOCOL',
    'PACKET_LENGTH_TOO_LONG',
    'RECORD_LAYER_FAILURE',
    'HTTP_REQUEST',
    'HTTPS_PROXY_REQUEST',
})

_REASON_PATTERN = re.compile(r'\[SSL: ([A-Z0-9_]+)\]')


def _is_not_tls_error(error: ssl.SSLError) -> bool:
    """判断SSL错误是否由对端未使用TLS协议引起"""
    reason = getattr(error, 'reason', None)
    if reason:
        return reason in NOT_TLS_REASONS

    message = str(error)
    match = _REASON_PATTERN.search(message)
    if match:
        return match.group(1) in NOT_TLS_REASONS

    # 较新的OpenSSL只提供原因描述文本，例如 "[SSL] record layer failure"
    message = message.lower()
    return any(reason.lower().replace('_', ' ') in message for reason in NOT_TLS_REASONS)


def classify_connection_error(error: Exception) -> CheckStatus:
    """
    将连接阶段的异常归类为检查结果类型

    Args:
        error: 握手或连接时抛出的异常

    Returns:
        CheckStatus: TLS_CONNECTION_FAILED 或 OTHER_ERROR
    """
    # 证书验证失败也是SSLError的子类，需要先判断
    if isinstance(error, ssl.SSLCertVerificationError):
        return CheckStatus.OTHER_ERROR

    if isinstance(error, ssl.SSLError) and _is_not_tls_error(error):
        return CheckStatus.TLS_CONNECTION_FAILED

    return CheckStatus.OTHER_ERROR


class NetworkErrorHandler:
    """网络错误处理器"""

    def __init__(self):
        """初始化网络错误处理器"""
        self.logger = logging.getLogger(__name__)

    def handle_ssl_connection_error(self, domain: str, error: Exception) -> Dict[str, Any]:
        """
        处理SSL连接错误

        Args:
            domain: 域名
            error: 异常对象

        Returns:
            Dict[str, Any]: 包含status、error_message和suggested_action的错误信息
        """
        status = classify_connection_error(error)
        error_info = {
            'status': status,
            'error_message': str(error) or type(error).__name__,
            'suggested_action': self._get_suggested_action(error)
        }

        if status is CheckStatus.TLS_CONNECTION_FAILED:
            self.logger.warning(f"域名 {domain} 未使用TLS协议响应: {error_info['error_message']}")
        else:
            self.logger.debug(f"域名 {domain} SSL连接错误: {error_info['error_message']}")

        return error_info

    def _get_suggested_action(self, error: Exception) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        error_message = str(error).lower()

        if isinstance(error, CertificateUnavailableError):
            return "服务器未返回证书，检查服务器SSL配置"
        elif isinstance(error, socket.timeout):
            return "检查网络连接，考虑设置超时时间"
        elif isinstance(error, socket.gaierror):
            return "检查域名是否正确，DNS服务器是否可用"
        elif isinstance(error, ConnectionRefusedError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(error, ssl.SSLCertVerificationError):
            return "证书验证失败，可能是自签名证书或证书链问题"
        elif isinstance(error, ssl.SSLError):
            if classify_connection_error(error) is CheckStatus.TLS_CONNECTION_FAILED:
                return "端口443未提供TLS服务，检查服务器配置"
            elif 'handshake failure' in error_message:
                return "SSL握手失败，检查SSL/TLS版本兼容性"
            else:
                return "SSL连接问题，检查服务器SSL配置"
        elif 'network is unreachable' in error_message:
            return "网络不可达，检查网络连接和路由"
        elif 'no route to host' in error_message:
            return "无法路由到主机，检查防火墙和网络配置"
        else:
            return "检查网络连接和服务器状态"
