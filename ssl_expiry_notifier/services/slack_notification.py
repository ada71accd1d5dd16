"""
Slack Webhook通知服务
"""
from typing import Optional
import logging

import requests

from ..interfaces import NotificationServiceInterface
from ..models import DomainEntry
from .error_handler import NotificationDeliveryError

ALERT_TEMPLATE = (
    ":warning: *Certificate check failed:*\n"
    "*Name:* {name}\n"
    "*URL:* <{url}|{url}>\n"
    "*Contact:* {contact}\n"
    "*Error:* {error}"
)


class SlackNotificationService(NotificationServiceInterface):
    """Slack Webhook通知服务实现"""

    def __init__(self, webhook_url: str, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        """
        初始化Slack通知服务

        Args:
            webhook_url: Incoming Webhook地址
            timeout: 请求超时时间（秒），为None时不设置超时
            session: 可选的requests会话
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.session = session
        self.logger = logging.getLogger(__name__)

    def send_alert(self, domain: DomainEntry, error_message: str) -> None:
        """
        发送证书检查失败通知

        Args:
            domain: 检查失败的域名条目
            error_message: 错误描述

        Raises:
            NotificationDeliveryError: 请求失败或响应状态码不是200
        """
        if not self.webhook_url:
            raise NotificationDeliveryError("Slack Webhook地址未配置")

        payload = {"text": self.format_alert_message(domain, error_message)}
        post = self.session.post if self.session is not None else requests.post

        try:
            # 响应体不使用，检查状态码后立即释放连接
            with post(self.webhook_url, json=payload, timeout=self.timeout) as response:
                status_code = response.status_code
        except requests.RequestException as e:
            raise NotificationDeliveryError(
                f"Unable to send POST request to Slack Webhook: {e}"
            ) from e

        if status_code != 200:
            raise NotificationDeliveryError(
                f"Slack Webhook response status code: {status_code}",
                status_code=status_code
            )

        self.logger.info(f"Slack通知发送成功 - 域名: {domain.url}")

    def format_alert_message(self, domain: DomainEntry, error_message: str) -> str:
        """
        格式化通知内容

        Args:
            domain: 域名条目
            error_message: 错误描述

        Returns:
            str: Slack格式的多行消息
        """
        return ALERT_TEMPLATE.format(
            name=domain.name,
            url=domain.url,
            contact=domain.contact,
            error=error_message
        )
