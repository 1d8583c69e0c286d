from __future__ import annotations

from pydantic_ai.models import Model, infer_model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.ollama import OllamaProvider

from basedai.config import Config, ConfigurationError

OLLAMA_PREFIX = "ollama:"


def init_model(config: Config) -> Model:
    model_name = config.model_name
    try:
        if model_name.startswith(OLLAMA_PREFIX):
            return OpenAIChatModel(
                model_name.removeprefix(OLLAMA_PREFIX),
                provider=OllamaProvider(base_url=config.ollama_base_url),
            )
        return infer_model(model_name)
    except Exception as e:
        raise ConfigurationError(f"Can not initialize model {model_name}: {e}") from e
