"""
服务接口定义
"""
from abc import ABC, abstractmethod
from .models import CheckOutcome, DomainEntry, MonitorConfig


class ConfigLoaderInterface(ABC):
    """配置加载器接口"""

    @abstractmethod
    def load(self) -> MonitorConfig:
        """加载配置"""
        pass


class SSLCertificateCheckerInterface(ABC):
    """SSL证书检查器接口"""

    @abstractmethod
    def check_certificate(self, host: str) -> CheckOutcome:
        """检查单个主机的SSL证书"""
        pass


class NotificationServiceInterface(ABC):
    """通知服务接口"""

    @abstractmethod
    def send_alert(self, domain: DomainEntry, error_message: str) -> None:
        """发送证书检查失败通知"""
        pass

    @abstractmethod
    def format_alert_message(self, domain: DomainEntry, error_message: str) -> str:
        """格式化通知内容"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""

    @abstractmethod
    def log_check_start(self, domain_count: int):
        """记录检查开始"""
        pass

    @abstractmethod
    def log_check_outcome(self, domain: DomainEntry, outcome: CheckOutcome):
        """记录单个域名的检查结果"""
        pass

    @abstractmethod
    def log_notification_failure(self, domain: DomainEntry, error: Exception):
        """记录通知发送失败"""
        pass
