"""
端点列表读取服务
"""
import logging
from typing import Iterator, TextIO

from ..errors import InputSourceUnavailable
from ..interfaces import EndpointSourceInterface


class FileEndpointSource(EndpointSourceInterface):
    """从文本文件读取端点（每行一个 host:port）"""

    def __init__(self, path: str, encoding: str = 'utf-8'):
        """
        初始化端点来源

        Args:
            path: 端点列表文件路径
            encoding: 文件编码
        """
        self.path = path
        self.encoding = encoding
        self.logger = logging.getLogger(__name__)

    def iter_endpoints(self) -> Iterator[str]:
        """
        打开文件并返回惰性的端点迭代器

        文件在调用时立即打开，因此无法打开的文件会在任何探测开始前报错。

        Returns:
            Iterator[str]: 去除首尾空白后的非空行

        Raises:
            InputSourceUnavailable: 文件无法打开
        """
        try:
            handle = open(self.path, encoding=self.encoding)
        except OSError as e:
            self.logger.error(f"无法打开端点列表 {self.path}: {str(e)}")
            raise InputSourceUnavailable(self.path, e) from e

        self.logger.debug(f"已打开端点列表: {self.path}")
        return self._scan(handle)

    def _scan(self, handle: TextIO) -> Iterator[str]:
        with handle:
            try:
                for line in handle:
                    endpoint = line.strip()
                    if not endpoint:
                        continue
                    yield endpoint
            except (OSError, UnicodeDecodeError) as e:
                self.logger.error(f"读取端点列表 {self.path} 时发生错误: {str(e)}")
                raise InputSourceUnavailable(self.path, e) from e
