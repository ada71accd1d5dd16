"""
证书监控入口点
"""
import argparse
import time
from typing import List, Optional

from .interfaces import (
    LoggerServiceInterface,
    NotificationServiceInterface,
    SSLCertificateCheckerInterface,
)
from .models import CheckOutcome, CheckStatus, DomainEntry, MonitorConfig, RunResult
from .services.config_loader import DEFAULT_CONFIG_PATH, describe_config, load_config
from .services.error_handler import ConfigLoadError, NotificationDeliveryError
from .services.logger import LoggerService
from .services.slack_notification import SlackNotificationService
from .services.ssl_checker import SSLCertificateChecker


def build_error_message(outcome: CheckOutcome, describe_other_errors: bool = False) -> str:
    """
    根据检查结果类型生成通知中的错误描述

    只有TLS连接失败和证书即将过期有固定模板，其他错误默认返回空字符串

    Args:
        outcome: 检查结果
        describe_other_errors: 为其他错误生成包含详情的描述

    Returns:
        str: 错误描述
    """
    if outcome.status is CheckStatus.TLS_CONNECTION_FAILED:
        return f"Unable to establish TLS connection: {outcome.detail}"
    if outcome.status is CheckStatus.CERTIFICATE_EXPIRING_SOON:
        return f"Certificate is expiring soon: {outcome.detail}"
    if describe_other_errors and outcome.status is CheckStatus.OTHER_ERROR:
        return f"Certificate check failed: {outcome.detail}"
    return ""


class CertificateMonitor:
    """SSL证书监控器主类"""

    def __init__(self, config: MonitorConfig,
                 checker: Optional[SSLCertificateCheckerInterface] = None,
                 notifier: Optional[NotificationServiceInterface] = None,
                 logger_service: Optional[LoggerServiceInterface] = None,
                 describe_other_errors: bool = False):
        """
        初始化监控器

        Args:
            config: 运行配置
            checker: 证书检查器，默认为SSLCertificateChecker
            notifier: 通知服务，默认使用配置中的Webhook地址
            logger_service: 日志服务
            describe_other_errors: 为未分类错误发送包含详情的消息
        """
        self.config = config
        self.logger_service = logger_service or LoggerService()
        self.ssl_checker = checker or SSLCertificateChecker()
        self.notification_service = notifier or SlackNotificationService(config.webhook_url)
        self.describe_other_errors = describe_other_errors

    def run(self) -> RunResult:
        """
        按配置顺序依次检查所有域名

        单个域名的检查或通知失败不会中断运行

        Returns:
            RunResult: 运行结果
        """
        start = time.monotonic()
        domains: List[DomainEntry] = list(self.config.domains)
        result = RunResult(total_domains=len(domains))

        self.logger_service.log_check_start(len(domains))

        for domain in domains:
            outcome = self.ssl_checker.check_certificate(domain.url)
            result.outcomes.append((domain, outcome))
            self.logger_service.log_check_outcome(domain, outcome)

            if outcome.is_ok:
                result.passed += 1
                continue

            result.failed += 1
            if self._send_notification(domain, outcome):
                result.notifications_sent += 1
            else:
                result.notification_failures += 1

        self.logger_service.log_check_end()
        result.execution_time = time.monotonic() - start
        return result

    def _send_notification(self, domain: DomainEntry, outcome: CheckOutcome) -> bool:
        """
        发送失败通知

        Args:
            domain: 域名条目
            outcome: 检查结果

        Returns:
            bool: 通知是否发送成功
        """
        error_message = build_error_message(outcome, self.describe_other_errors)

        try:
            self.notification_service.send_alert(domain, error_message)
        except NotificationDeliveryError as e:
            self.logger_service.log_notification_failure(domain, e)
            return False

        return True


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check TLS certificate expiry for configured domains and alert a Slack webhook"
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to the YAML configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--describe-other-errors",
        action="store_true",
        help="Include the failure detail in alerts for unclassified errors",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行入口

    Args:
        argv: 命令行参数

    Returns:
        int: 进程退出码，仅在配置加载失败时为1
    """
    args = _parse_args(argv)
    logger_service = LoggerService()

    try:
        config = load_config(args.config)
    except ConfigLoadError as e:
        logger_service.logger.error(f"Unable to read the configuration file: {e}")
        return 1

    logger_service.log_configuration_info(describe_config(config))

    monitor = CertificateMonitor(
        config,
        logger_service=logger_service,
        describe_other_errors=args.describe_other_errors
    )
    monitor.run()
    return 0
