"""Server-sent event 流解码。

上游以任意大小的文本块推送 ``data: <json>`` 行，一行可能被拆到两个块里。
StreamDecoder 负责：

1. 维护未完成行的缓冲区，只有遇到换行符的片段才算完整帧。
2. 丢弃所有不以 ``data: `` 开头的行（空行、注释、event 行）。
3. 解析 JSON 并取出 ``choices[0].delta.content``；单帧解析失败只记日志，继续解码。
4. ``[DONE]`` 默认只是一个标记，结束与否由上游块序列是否耗尽决定；
   ``stop_on_done=True`` 时遇到它立即结束。

源耗尽时缓冲区里剩下的半行无法校验，直接丢弃。
"""

import codecs
import json
import logging
from typing import Iterable, Iterator, List, Optional, Union

from chat_core.infrastructure.logging.logger import log_event


DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

Chunk = Union[str, bytes]


class StreamDecoder:
    def __init__(self, stop_on_done: bool = False):
        self.stop_on_done = stop_on_done
        self.done = False
        self._buffer = ""
        self._bytes_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def pending(self) -> str:
        """尚未遇到换行的残留文本。"""

        return self._buffer

    def feed(self, chunk: Chunk) -> List[str]:
        """输入一个原始块，返回本块内完成的所有非空增量文本。"""

        if self.done:
            return []
        if isinstance(chunk, bytes):
            chunk = self._bytes_decoder.decode(chunk)
        if not chunk:
            return []
        self._buffer += chunk
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        tokens: List[str] = []
        for line in lines:
            token = self._decode_line(line)
            if self.done:
                break
            if token:
                tokens.append(token)
        return tokens

    def finish(self) -> None:
        """上游结束：丢弃不完整的尾行。"""

        tail = self._buffer + self._bytes_decoder.decode(b"", final=True)
        if tail.strip():
            log_event(logging.DEBUG, "Discarded incomplete trailing frame", frame=tail[:120])
        self._buffer = ""
        self.done = True

    def _decode_line(self, line: str) -> Optional[str]:
        if not line.startswith(DATA_PREFIX):
            return None
        data_str = line[len(DATA_PREFIX):].strip()
        if data_str == DONE_SENTINEL:
            if self.stop_on_done:
                self.done = True
            return None
        try:
            payload = json.loads(data_str)
        except ValueError as e:
            log_event(logging.WARNING, "Skipped malformed stream frame", frame=data_str[:120], error=str(e))
            return None
        try:
            token = payload["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            # usage / finish 帧没有 delta
            log_event(logging.DEBUG, "Stream frame without delta content", frame=data_str[:120])
            return None
        if not isinstance(token, str):
            return None
        return token


def iter_delta_tokens(chunks: Iterable[Chunk], stop_on_done: bool = False) -> Iterator[str]:
    """把原始块序列转换成增量文本序列（惰性、只能消费一次）。"""

    decoder = StreamDecoder(stop_on_done=stop_on_done)
    for chunk in chunks:
        for token in decoder.feed(chunk):
            yield token
        if decoder.done:
            return
    decoder.finish()
