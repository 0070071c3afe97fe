"""Token 计数。

请求构造只需要"这段文本有多少个 token"，因此这里只定义一个极小的协议：

- TiktokenTokenizer: 使用 tiktoken 的 BPE 编码，与补全服务的计数一致。
- ApproximateTokenizer: 约每 4 个字符 1 个 token，无需下载编码表，适合离线与测试。
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional, Protocol

import tiktoken


class Tokenizer(Protocol):
    def count(self, text: str) -> int:
        ...


class TiktokenTokenizer:
    """tiktoken 适配器。编码表在第一次计数时才加载。"""

    def __init__(self, encoding_name: str = "cl100k_base"):
        self.encoding_name = encoding_name
        self._encoding: Optional[tiktoken.Encoding] = None
        self._lock = threading.Lock()

    def _get_encoding(self) -> tiktoken.Encoding:
        with self._lock:
            if self._encoding is None:
                self._encoding = tiktoken.get_encoding(self.encoding_name)
            return self._encoding

    def count(self, text: str) -> int:
        if not text:
            return 0
        # 用户文本里可能出现 "<|endoftext|>" 之类的字面量，按普通文本计数
        return len(self._get_encoding().encode(text, disallowed_special=()))


@dataclass
class ApproximateTokenizer:
    chunk_size: int = 4

    def count(self, text: str) -> int:
        if not text:
            return 0
        return -(-len(text) // self.chunk_size)


def create_tokenizer(backend: str = "tiktoken", encoding_name: str = "cl100k_base") -> Tokenizer:
    """根据配置名创建 Tokenizer。"""

    if backend == "approximate":
        return ApproximateTokenizer()
    if backend == "tiktoken":
        return TiktokenTokenizer(encoding_name)
    raise ValueError(f"Unknown tokenizer backend: {backend!r}")
