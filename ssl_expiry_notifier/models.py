"""
数据模型定义
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Tuple


@dataclass(frozen=True)
class DomainEntry:
    """配置文件中的单个域名条目"""
    name: str
    url: str
    contact: str


@dataclass(frozen=True)
class MonitorConfig:
    """运行配置"""
    webhook_url: str
    domains: Tuple[DomainEntry, ...] = ()


class CheckStatus(Enum):
    """证书检查结果类型"""
    OK = "ok"
    TLS_CONNECTION_FAILED = "tls_connection_failed"
    CERTIFICATE_EXPIRING_SOON = "certificate_expiring_soon"
    OTHER_ERROR = "other_error"


@dataclass(frozen=True)
class CheckOutcome:
    """单个域名的证书检查结果"""
    status: CheckStatus
    days_remaining: Optional[int] = None
    expiry_date: Optional[datetime] = None
    detail: Optional[str] = None
    suggested_action: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        """检查是否通过"""
        return self.status is CheckStatus.OK

    @property
    def is_expired(self) -> bool:
        """判断证书是否已过期"""
        return self.days_remaining is not None and self.days_remaining < 0


@dataclass
class RunResult:
    """一次运行的结果统计"""
    total_domains: int = 0
    passed: int = 0
    failed: int = 0
    notifications_sent: int = 0
    notification_failures: int = 0
    outcomes: List[Tuple[DomainEntry, CheckOutcome]] = field(default_factory=list)
    execution_time: float = 0.0
