import importlib
from typing import Optional

from stockpro.config import Settings, load_settings
from .generative_model import GenerativeModel


def load_model(settings: Optional[Settings] = None) -> GenerativeModel:
    """
    Pick the model implementation from settings.

    order:
    1) MODEL_MODULE="pkg.module:factory" – any custom implementation.
    2) USE_BEDROCK=0 – the deterministic stub.
    3) otherwise – Amazon Bedrock.
    """
    settings = settings or load_settings()
    if settings.model_module:
        mod, factory = settings.model_module.split(":")
        return getattr(importlib.import_module(mod), factory)()
    if not settings.use_bedrock:
        from stockpro.model_impl.stub_model import StubModel
        return StubModel()
    from stockpro.model_impl.bedrock_model import BedrockModel
    return BedrockModel(settings)
