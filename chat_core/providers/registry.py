"""Provider 与模型配置。

集中维护 Provider 的接口地址以及 /model 命令可选的模型列表。
会话引擎本身不关心选中的是哪个模型，模型 ID 只是透传给接口的字符串。"""

from dataclasses import dataclass
from typing import Mapping, Tuple


@dataclass(frozen=True)
class ModelConfig:
    """单个可选模型。"""

    model_id: str
    label: str


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Tuple[ModelConfig, ...]

    @property
    def model_ids(self) -> Tuple[str, ...]:
        return tuple(m.model_id for m in self.models)

    def chat_url(self, base_url: str = "") -> str:
        return f"{(base_url or self.base_url).rstrip('/')}/chat/completions"


GROQ_CONFIG = ProviderConfig(
    name="groq",
    base_url="https://api.groq.com/openai/v1",
    models=(
        ModelConfig(model_id="openai/gpt-oss-120b", label="GPT-OSS 120B"),
        ModelConfig(
            model_id="meta-llama/llama-4-maverick-17b-128e-instruct",
            label="Llama 4 Maverick",
        ),
        ModelConfig(model_id="moonshotai/kimi-k2-instruct-0905", label="Kimi K2"),
    ),
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "groq": GROQ_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
