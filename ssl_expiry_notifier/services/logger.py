"""
日志服务
"""
import os
import sys
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from urllib.parse import urlsplit

from ..interfaces import LoggerServiceInterface
from ..models import CheckOutcome, CheckStatus, DomainEntry


class LoggerService(LoggerServiceInterface):
    """日志服务实现"""

    def __init__(self, logger_name: str = "ssl_expiry_notifier", log_level: Optional[str] = None):
        """
        初始化日志服务

        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
        """
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')

        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        self.execution_stats = self._empty_stats()

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        self.logger.setLevel(level)

        # 避免重复添加处理器；其他已挂载的处理器（如测试捕获）不影响标准输出
        if not self._has_stdout_handler():
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)

        self.logger.propagate = False

    def _has_stdout_handler(self) -> bool:
        """检查日志器是否已有输出到当前标准输出的处理器"""
        return any(
            isinstance(handler, logging.StreamHandler) and handler.stream is sys.stdout
            for handler in self.logger.handlers
        )

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            'start_time': None,
            'end_time': None,
            'total_domains': 0,
            'passed': 0,
            'failed': 0,
            'notification_failures': 0
        }

    def log_check_start(self, domain_count: int):
        """
        记录检查开始

        Args:
            domain_count: 要检查的域名数量
        """
        # 同一日志服务可用于多次运行，每次运行重新统计
        self.reset_stats()
        self.execution_stats['start_time'] = datetime.now(timezone.utc)
        self.execution_stats['total_domains'] = domain_count

        self.logger.info(f"开始SSL证书检查，共 {domain_count} 个域名")

    def log_check_outcome(self, domain: DomainEntry, outcome: CheckOutcome):
        """
        记录单个域名的检查结果

        Args:
            domain: 域名条目
            outcome: 检查结果
        """
        if outcome.is_ok:
            self.execution_stats['passed'] += 1
            self.logger.info(f"Certificate check passed for: {domain.url}")
            return

        self.execution_stats['failed'] += 1

        if outcome.status is CheckStatus.CERTIFICATE_EXPIRING_SOON:
            state = "已过期" if outcome.is_expired else "即将过期"
            self.logger.warning(
                f"证书{state} - 域名: {domain.url}, "
                f"过期时间: {outcome.expiry_date.isoformat()}, "
                f"剩余天数: {outcome.days_remaining} 天"
            )
            return

        if outcome.status is CheckStatus.TLS_CONNECTION_FAILED:
            message = f"无法建立TLS连接 - 域名: {domain.url}, 错误: {outcome.detail}"
        else:
            message = f"证书检查失败 - 域名: {domain.url}, 错误: {outcome.detail}"

        if outcome.suggested_action:
            message += f", 建议: {outcome.suggested_action}"
        self.logger.error(message)

    def log_notification_failure(self, domain: DomainEntry, error: Exception):
        """
        记录通知发送失败

        Args:
            domain: 域名条目
            error: 异常对象
        """
        self.execution_stats['notification_failures'] += 1
        self.logger.error(f"Unable to send message to Slack ({domain.url}): {error}")

    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息

        Args:
            config: 配置信息字典
        """
        safe_config = self._sanitize_config(config)

        self.logger.info("系统配置信息:")
        for key, value in safe_config.items():
            self.logger.info(f"  {key}: {value}")

    def _sanitize_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        清理配置信息中的敏感数据

        Webhook地址的路径部分即是凭证，只保留协议和主机

        Args:
            config: 原始配置

        Returns:
            Dict[str, Any]: 清理后的配置
        """
        safe_config = {}
        for key, value in config.items():
            key_lower = key.lower()

            is_sensitive = (
                'webhook' in key_lower or
                key_lower in ('password', 'secret', 'token', 'key') or
                key_lower.endswith('_secret') or
                key_lower.endswith('_token')
            )

            if is_sensitive and isinstance(value, str) and value:
                parts = urlsplit(value)
                if parts.scheme and parts.netloc:
                    safe_value = f"{parts.scheme}://{parts.netloc}/***"
                else:
                    safe_value = value[:3] + "***" if len(value) > 3 else "***"
                safe_config[key] = safe_value
            else:
                safe_config[key] = value

        return safe_config

    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要

        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        stats = self.execution_stats
        duration = 0.0
        if stats['start_time'] and stats['end_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()

        return {
            'duration_seconds': duration,
            'total_domains': stats['total_domains'],
            'passed': stats['passed'],
            'failed': stats['failed'],
            'notification_failures': stats['notification_failures']
        }

    def log_check_end(self):
        """记录检查结束和执行摘要"""
        self.execution_stats['end_time'] = datetime.now(timezone.utc)
        summary = self.get_execution_summary()

        self.logger.info(
            f"SSL证书检查完成: 总计 {summary['total_domains']} 个域名, "
            f"通过 {summary['passed']} 个, 失败 {summary['failed']} 个, "
            f"通知失败 {summary['notification_failures']} 个, "
            f"耗时 {summary['duration_seconds']:.2f} 秒"
        )

    def reset_stats(self):
        """重置执行统计"""
        self.execution_stats = self._empty_stats()
