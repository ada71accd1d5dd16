"""
配置加载服务
"""
import re
from typing import Any, Dict, List
import logging

import yaml

from ..interfaces import ConfigLoaderInterface
from ..models import DomainEntry, MonitorConfig
from .error_handler import ConfigLoadError

DEFAULT_CONFIG_PATH = "config.yaml"


class ConfigLoader(ConfigLoaderInterface):
    """YAML配置加载器实现"""

    def __init__(self, path: str = DEFAULT_CONFIG_PATH):
        """
        初始化配置加载器

        Args:
            path: 配置文件路径，默认为"config.yaml"
        """
        self.path = path
        self.logger = logging.getLogger(__name__)

        # 主机名格式验证正则表达式
        self.hostname_pattern = re.compile(
            r'^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)*[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$'
        )

    def load(self) -> MonitorConfig:
        """
        读取并解析配置文件

        Returns:
            MonitorConfig: 运行配置

        Raises:
            ConfigLoadError: 文件不存在、无法读取或格式错误
        """
        data = self._read_yaml()

        if not isinstance(data, dict):
            raise ConfigLoadError(f"配置文件 {self.path} 的顶层必须是键值映射")

        webhook_url = data.get('slack_webhook_url')
        if not isinstance(webhook_url, str) or not webhook_url.strip():
            raise ConfigLoadError(f"配置文件 {self.path} 缺少 slack_webhook_url")

        domains = self._parse_domains(data.get('domains'))
        if not domains:
            self.logger.warning(f"配置文件 {self.path} 中没有要检查的域名")

        self.logger.info(f"成功加载 {len(domains)} 个域名")
        return MonitorConfig(webhook_url=webhook_url.strip(), domains=tuple(domains))

    def _read_yaml(self) -> Any:
        """读取YAML文件内容"""
        # 以二进制方式读取，由PyYAML检测编码，解码失败时抛出ReaderError
        try:
            with open(self.path, 'rb') as f:
                return yaml.safe_load(f)
        except OSError as e:
            raise ConfigLoadError(f"无法读取配置文件 {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"无法解析配置文件 {self.path}: {e}") from e

    def _parse_domains(self, raw_domains: Any) -> List[DomainEntry]:
        """
        解析域名列表

        Args:
            raw_domains: YAML中的domains字段

        Returns:
            List[DomainEntry]: 按配置顺序排列的域名条目
        """
        if raw_domains is None:
            return []

        if not isinstance(raw_domains, list):
            raise ConfigLoadError("domains 字段必须是列表")

        entries = []
        for index, item in enumerate(raw_domains):
            entries.append(self._parse_entry(index, item))

        return entries

    def _parse_entry(self, index: int, item: Any) -> DomainEntry:
        """解析单个域名条目"""
        if not isinstance(item, dict):
            raise ConfigLoadError(f"domains[{index}] 必须是键值映射")

        url = self._as_text(item.get('url'))
        if not url:
            raise ConfigLoadError(f"domains[{index}] 缺少 url")

        if not self.validate_hostname(url):
            self.logger.warning(f"domains[{index}] 的 url 不是有效的主机名: {url}")

        return DomainEntry(
            name=self._as_text(item.get('name')),
            url=url,
            contact=self._as_text(item.get('contact'))
        )

    def validate_hostname(self, hostname: str) -> bool:
        """
        验证主机名格式（不含协议、端口和路径）

        Args:
            hostname: 要验证的主机名

        Returns:
            bool: 主机名是否有效
        """
        if not hostname or not isinstance(hostname, str):
            return False

        if len(hostname) > 253:
            return False

        return bool(self.hostname_pattern.match(hostname))

    @staticmethod
    def _as_text(value: Any) -> str:
        """将YAML标量转换为字符串，缺失时为空字符串"""
        if value is None:
            return ""
        return str(value).strip()


def load_config(path: str = DEFAULT_CONFIG_PATH) -> MonitorConfig:
    """
    加载配置文件

    Args:
        path: 配置文件路径

    Returns:
        MonitorConfig: 运行配置
    """
    return ConfigLoader(path).load()


def describe_config(config: MonitorConfig) -> Dict[str, Any]:
    """
    生成用于日志记录的配置摘要

    Args:
        config: 运行配置

    Returns:
        Dict[str, Any]: 配置摘要
    """
    return {
        'slack_webhook_url': config.webhook_url,
        'domain_count': len(config.domains),
        'domains': ", ".join(entry.url for entry in config.domains)
    }
