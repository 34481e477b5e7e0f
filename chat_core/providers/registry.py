"""模型目录。

列出控制台里可选的模型，并集中维护模型能力标记：名称中含有
"search"（不区分大小写）的模型不接受 ``reasoning_effort`` 参数。
目录之外的模型 ID 也允许使用，原样透传给上游。"""

import re
from dataclasses import dataclass
from typing import Mapping, Tuple


SEARCH_MODEL_PATTERN = re.compile("search", re.IGNORECASE)


@dataclass(frozen=True)
class ModelInfo:
    """单个模型的展示信息。"""

    model_id: str
    group: str


MODEL_CATALOGUE: Tuple[ModelInfo, ...] = (
    ModelInfo("gpt-5", "gpt-5"),
    ModelInfo("gpt-5-mini", "gpt-5"),
    ModelInfo("gpt-5-nano", "gpt-5"),
    ModelInfo("o4-mini", "o-series"),
    ModelInfo("o3", "o-series"),
    ModelInfo("gpt-4o-search-preview", "search"),
    ModelInfo("gpt-4o", "gpt-4o"),
    ModelInfo("gpt-4.5-preview", "gpt-4.5"),
    ModelInfo("gpt-4.1", "gpt-4.1"),
    ModelInfo("gpt-4.1-mini", "gpt-4.1"),
    ModelInfo("gpt-4.1-nano", "gpt-4.1"),
)

MODELS_BY_ID: Mapping[str, ModelInfo] = {m.model_id: m for m in MODEL_CATALOGUE}


def supports_reasoning_effort(model_id: str) -> bool:
    """search 系列模型会拒绝 reasoning_effort 参数。"""

    return SEARCH_MODEL_PATTERN.search(model_id) is None


def is_known_model(model_id: str) -> bool:
    return model_id in MODELS_BY_ID
