import os
import tempfile

# Keep log files and default storage out of the working tree.
_TMP_ROOT = tempfile.mkdtemp(prefix="chat_core_tests_")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP_ROOT, "logs"))
os.environ.setdefault("STORAGE_ROOT", os.path.join(_TMP_ROOT, ".storage"))
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("STREAM_STOP_ON_DONE", None)
