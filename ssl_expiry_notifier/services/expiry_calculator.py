"""
证书过期计算服务
"""
from datetime import datetime, timezone
from typing import Optional


class ExpiryCalculator:
    """证书过期计算器"""

    def __init__(self, warning_days: int = 30):
        """
        初始化过期计算器

        Args:
            warning_days: 提前警告天数，默认30天
        """
        self.warning_days = warning_days

    def calculate_days_until_expiry(self, expiry_date: datetime, now: Optional[datetime] = None) -> int:
        """
        计算距离过期的天数

        按小时数除以24后向零截断，已过期时为负数或零

        Args:
            expiry_date: 过期时间
            now: 当前时间，默认为UTC当前时间

        Returns:
            int: 剩余天数（负数表示已过期）
        """
        now = now or datetime.now(timezone.utc)
        hours = (expiry_date - now).total_seconds() / 3600
        return int(hours / 24)

    def is_expiring_soon(self, days_until_expiry: int) -> bool:
        """
        判断证书是否需要告警（在警告期内或已过期）

        Args:
            days_until_expiry: 剩余天数

        Returns:
            bool: 是否需要告警
        """
        return days_until_expiry <= self.warning_days
