"""对话日志渲染。

ChatSession 只依赖 ``TranscriptRenderer`` 协议。输出只追加不回写，
唯一的例外是 ``clear()``。
"""

from __future__ import annotations

import sys
from typing import List, Optional, Protocol, TextIO


DIVIDER = "\n" + " ".join("-" * 32) + "\n"


def format_header(label: str) -> str:
    return f"\n{label}\n\n"


class TranscriptRenderer(Protocol):
    def print_header(self, label: str) -> None:
        ...

    def print_body(self, text: str) -> None:
        ...

    def print_divider(self) -> None:
        ...

    def print_token(self, text: str) -> None:
        ...

    def clear(self) -> None:
        ...


def print_message(renderer: TranscriptRenderer, label: str, text: str) -> None:
    """一条完整消息：header、正文、分隔线。"""

    renderer.print_header(label)
    renderer.print_body(text)
    renderer.print_divider()


class _TextRenderer:
    def print_header(self, label: str) -> None:
        self._append(format_header(label))

    def print_body(self, text: str) -> None:
        self._append(text + "\n")

    def print_divider(self) -> None:
        self._append(DIVIDER)

    def print_token(self, text: str) -> None:
        self._append(text)

    def _append(self, text: str) -> None:
        raise NotImplementedError


class BufferedTranscript(_TextRenderer):
    """把日志按追加片段保存在内存里。"""

    def __init__(self) -> None:
        self._parts: List[str] = []

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def clear(self) -> None:
        self._parts.clear()

    def _append(self, text: str) -> None:
        self._parts.append(text)


class StreamTranscript(_TextRenderer):
    """直接写入文本流（默认 stdout），每次写入后 flush。"""

    CLEAR_SCREEN = "\033[2J\033[H"

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout

    def clear(self) -> None:
        isatty = getattr(self._stream, "isatty", None)
        if isatty is not None and isatty():
            self._append(self.CLEAR_SCREEN)

    def _append(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()
