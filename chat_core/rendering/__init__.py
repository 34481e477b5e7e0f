"""对话日志渲染器。"""

from .transcript import BufferedTranscript, StreamTranscript, TranscriptRenderer, print_message

__all__ = ["BufferedTranscript", "StreamTranscript", "TranscriptRenderer", "print_message"]
