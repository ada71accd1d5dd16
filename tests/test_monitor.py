"""
证书监控器测试
"""
import pytest
import logging
from datetime import datetime, timezone, timedelta
from unittest.mock import patch, MagicMock

from ssl_expiry_notifier.monitor import CertificateMonitor, build_error_message, main
from ssl_expiry_notifier.models import CheckOutcome, CheckStatus, DomainEntry, MonitorConfig, RunResult
from ssl_expiry_notifier.services.error_handler import NotificationDeliveryError
from ssl_expiry_notifier.services.slack_notification import SlackNotificationService
from ssl_expiry_notifier.services.ssl_checker import SSLCertificateChecker


OK = CheckOutcome(status=CheckStatus.OK, days_remaining=90)
EXPIRING = CheckOutcome(
    status=CheckStatus.CERTIFICATE_EXPIRING_SOON,
    days_remaining=10,
    expiry_date=datetime.now(timezone.utc) + timedelta(days=10),
    detail="certificate expires in 10 days"
)
NOT_TLS = CheckOutcome(status=CheckStatus.TLS_CONNECTION_FAILED, detail="[SSL: WRONG_VERSION_NUMBER] wrong version number")
REFUSED = CheckOutcome(status=CheckStatus.OTHER_ERROR, detail="[Errno 111] Connection refused")


class TestBuildErrorMessage:
    """错误描述生成测试类"""

    def test_tls_connection_failed(self):
        """测试TLS连接失败的描述"""
        assert build_error_message(NOT_TLS) == (
            "Unable to establish TLS connection: [SSL: WRONG_VERSION_NUMBER] wrong version number"
        )

    def test_certificate_expiring_soon(self):
        """测试证书即将过期的描述"""
        assert build_error_message(EXPIRING) == "Certificate is expiring soon: certificate expires in 10 days"

    def test_other_error_is_empty_by_default(self):
        """测试其他错误默认为空描述"""
        assert build_error_message(REFUSED) == ""

    def test_other_error_fallback(self):
        """测试启用详情后的描述"""
        assert build_error_message(REFUSED, describe_other_errors=True) == (
            "Certificate check failed: [Errno 111] Connection refused"
        )

    def test_ok_outcome(self):
        """测试检查通过时没有描述"""
        assert build_error_message(OK, describe_other_errors=True) == ""


class TestCertificateMonitor:
    """SSL证书监控器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.domains = (
            DomainEntry(name="Healthy", url="healthy.example.com", contact="@ops"),
            DomainEntry(name="Expiring", url="expiring.example.com", contact="@web"),
            DomainEntry(name="Plain", url="plain.example.com", contact="@infra"),
            DomainEntry(name="Down", url="down.example.com", contact="@infra"),
        )
        self.config = MonitorConfig(webhook_url="https://hooks.example.com/x", domains=self.domains)
        self.outcomes = {
            "healthy.example.com": OK,
            "expiring.example.com": EXPIRING,
            "plain.example.com": NOT_TLS,
            "down.example.com": REFUSED,
        }

        self.checker = MagicMock()
        self.checker.check_certificate.side_effect = lambda host: self.outcomes[host]
        self.notifier = MagicMock()
        self.logger_service = MagicMock()

        self.monitor = CertificateMonitor(
            self.config,
            checker=self.checker,
            notifier=self.notifier,
            logger_service=self.logger_service
        )

    def test_init_defaults(self):
        """测试默认组件"""
        with patch('ssl_expiry_notifier.monitor.LoggerService') as mock_logger:
            monitor = CertificateMonitor(self.config)

        assert isinstance(monitor.ssl_checker, SSLCertificateChecker)
        assert isinstance(monitor.notification_service, SlackNotificationService)
        assert monitor.notification_service.webhook_url == "https://hooks.example.com/x"
        assert monitor.logger_service == mock_logger.return_value
        assert monitor.describe_other_errors is False

    def test_run_checks_domains_in_order(self):
        """测试按配置顺序检查域名"""
        result = self.monitor.run()

        checked = [call.args[0] for call in self.checker.check_certificate.call_args_list]
        assert checked == [domain.url for domain in self.domains]
        assert [domain for domain, _ in result.outcomes] == list(self.domains)

    def test_run_notifies_failures(self):
        """测试只对失败的域名发送通知"""
        result = self.monitor.run()

        assert isinstance(result, RunResult)
        assert result.total_domains == 4
        assert result.passed == 1
        assert result.failed == 3
        assert result.notifications_sent == 3
        assert result.notification_failures == 0
        assert result.execution_time >= 0

        sent = [call.args for call in self.notifier.send_alert.call_args_list]
        assert sent == [
            (self.domains[1], "Certificate is expiring soon: certificate expires in 10 days"),
            (self.domains[2], "Unable to establish TLS connection: [SSL: WRONG_VERSION_NUMBER] wrong version number"),
            (self.domains[3], ""),
        ]

    def test_run_with_describe_other_errors(self):
        """测试为其他错误发送详情"""
        self.monitor.describe_other_errors = True

        self.monitor.run()

        last_call = self.notifier.send_alert.call_args_list[-1]
        assert last_call.args == (self.domains[3], "Certificate check failed: [Errno 111] Connection refused")

    def test_run_logs_outcomes(self):
        """测试记录每个域名的检查结果"""
        self.monitor.run()

        self.logger_service.log_check_start.assert_called_once_with(4)
        assert self.logger_service.log_check_outcome.call_count == 4
        self.logger_service.log_check_outcome.assert_any_call(self.domains[0], OK)
        self.logger_service.log_check_end.assert_called_once()

    def test_notification_failure_does_not_abort(self):
        """测试通知失败不会中断后续检查"""
        error = NotificationDeliveryError("Slack Webhook response status code: 500", status_code=500)
        self.notifier.send_alert.side_effect = [error, None, None]

        result = self.monitor.run()

        assert self.checker.check_certificate.call_count == 4
        assert self.notifier.send_alert.call_count == 3
        assert result.notifications_sent == 2
        assert result.notification_failures == 1
        self.logger_service.log_notification_failure.assert_called_once_with(self.domains[1], error)

    def test_run_without_domains(self):
        """测试没有域名时不发起检查"""
        monitor = CertificateMonitor(
            MonitorConfig(webhook_url="https://hooks.example.com/x"),
            checker=self.checker,
            notifier=self.notifier,
            logger_service=self.logger_service
        )

        result = monitor.run()

        assert result.total_domains == 0
        self.checker.check_certificate.assert_not_called()
        self.notifier.send_alert.assert_not_called()


def not_after(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days, hours=1)).strftime('%b %d %H:%M:%S %Y GMT')


class TestMain:
    """命令行入口测试类"""

    def setup_method(self):
        """测试前准备"""
        # 让日志处理器绑定到当前测试捕获的标准输出
        logging.getLogger("ssl_expiry_notifier").handlers.clear()

    def teardown_method(self):
        """测试后清理"""
        logging.getLogger("ssl_expiry_notifier").handlers.clear()

    def write_config(self, tmp_path, content: str) -> str:
        path = tmp_path / "config.yaml"
        path.write_text(content, encoding="utf-8")
        return str(path)

    @patch('ssl_expiry_notifier.services.slack_notification.requests.post')
    @patch.object(SSLCertificateChecker, '_get_ssl_certificate')
    def test_end_to_end_one_expiring_one_healthy(self, mock_get_cert, mock_post, tmp_path, capsys):
        """测试端到端流程：一个即将过期，一个正常"""
        path = self.write_config(tmp_path, """
slack_webhook_url: https://hooks.slack.com/services/T000/B000/XXXX
domains:
  - name: Shop
    url: shop.example.com
    contact: "@shop-team"
  - name: Blog
    url: blog.example.com
    contact: "@blog-team"
""")
        certs = {
            "shop.example.com": {'notAfter': not_after(10)},
            "blog.example.com": {'notAfter': not_after(200)},
        }
        mock_get_cert.side_effect = lambda host: certs[host]
        mock_post.return_value.__enter__.return_value.status_code = 200

        exit_code = main(["--config", path])

        assert exit_code == 0
        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        assert args == ("https://hooks.slack.com/services/T000/B000/XXXX",)
        text = kwargs['json']['text']
        assert "*Name:* Shop" in text
        assert "<shop.example.com|shop.example.com>" in text
        assert "*Contact:* @shop-team" in text
        assert "*Error:* Certificate is expiring soon: " in text

        output = capsys.readouterr().out
        assert output.count("Certificate check passed for: ") == 1
        assert "Certificate check passed for: blog.example.com" in output

    @patch('ssl_expiry_notifier.services.slack_notification.requests.post')
    @patch.object(SSLCertificateChecker, '_get_ssl_certificate')
    def test_webhook_error_still_exits_zero(self, mock_get_cert, mock_post, tmp_path, capsys):
        """测试Webhook返回500时进程仍正常退出"""
        path = self.write_config(tmp_path, """
slack_webhook_url: https://hooks.slack.com/services/T000/B000/XXXX
domains:
  - name: Shop
    url: shop.example.com
    contact: "@shop-team"
""")
        mock_get_cert.return_value = {'notAfter': not_after(3)}
        mock_post.return_value.__enter__.return_value.status_code = 500

        assert main(["--config", path]) == 0
        assert "Unable to send message to Slack (shop.example.com): Slack Webhook response status code: 500" in capsys.readouterr().out

    @patch('ssl_expiry_notifier.services.slack_notification.requests.post')
    @patch('ssl_expiry_notifier.services.ssl_checker.socket.create_connection')
    def test_malformed_config_exits_non_zero(self, mock_connection, mock_post, tmp_path, capsys):
        """测试配置格式错误时退出且不发起网络请求"""
        path = self.write_config(tmp_path, "slack_webhook_url: [broken\n")

        exit_code = main(["--config", path])

        assert exit_code == 1
        mock_connection.assert_not_called()
        mock_post.assert_not_called()
        assert "Unable to read the configuration file" in capsys.readouterr().out

    @patch('ssl_expiry_notifier.services.slack_notification.requests.post')
    @patch('ssl_expiry_notifier.services.ssl_checker.socket.create_connection')
    def test_undecodable_config_exits_non_zero(self, mock_connection, mock_post, tmp_path, capsys):
        """测试配置文件包含无效UTF-8字节时记录错误并退出"""
        path = tmp_path / "config.yaml"
        path.write_bytes(b"slack_webhook_url: https://h/x\ndomains:\n  - name: \xff\xfe\n    url: example.com\n")

        assert main(["--config", str(path)]) == 1
        mock_connection.assert_not_called()
        mock_post.assert_not_called()
        assert "Unable to read the configuration file" in capsys.readouterr().out

    def test_output_reaches_stdout_with_other_handler_attached(self, tmp_path, capsys):
        """测试日志器已挂载其他处理器时仍输出到标准输出"""
        logging.getLogger("ssl_expiry_notifier").addHandler(logging.NullHandler())
        path = self.write_config(tmp_path, "slack_webhook_url: [broken\n")

        assert main(["--config", path]) == 1
        assert "Unable to read the configuration file" in capsys.readouterr().out

    @patch('ssl_expiry_notifier.services.slack_notification.requests.post')
    @patch('ssl_expiry_notifier.services.ssl_checker.socket.create_connection')
    def test_missing_config_exits_non_zero(self, mock_connection, mock_post, tmp_path, monkeypatch):
        """测试默认配置文件不存在"""
        monkeypatch.chdir(tmp_path)

        assert main([]) == 1
        mock_connection.assert_not_called()
        mock_post.assert_not_called()

    @patch('ssl_expiry_notifier.monitor.CertificateMonitor')
    def test_describe_other_errors_flag(self, mock_monitor, tmp_path):
        """测试命令行开关传递给监控器"""
        path = self.write_config(tmp_path, "slack_webhook_url: https://hooks.example.com/x\n")

        assert main(["--config", path, "--describe-other-errors"]) == 0

        assert mock_monitor.call_args[1]['describe_other_errors'] is True
        mock_monitor.return_value.run.assert_called_once()
