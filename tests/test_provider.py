"""Tests for agents/provider.py — model creation from provider/model names."""

from unittest.mock import patch

import pytest
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel

from agents.provider import create_model
from config.settings import Settings


@pytest.fixture(autouse=True)
def _keys():
    s = Settings(
        _env_file=None,
        default_model="deepseek/deepseek-chat",
        deepseek_api_key="sk-deepseek",
        openai_api_key="sk-openai",
        anthropic_api_key="sk-ant",
    )
    with patch("agents.provider.get_settings", return_value=s):
        yield s


def test_create_model_default():
    model = create_model()
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "deepseek-chat"


def test_create_model_openai():
    model = create_model("openai/gpt-4o")
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "gpt-4o"


def test_create_model_bare_name():
    model = create_model("gpt-4o-mini")
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "gpt-4o-mini"


def test_create_model_anthropic():
    model = create_model("anthropic/claude-sonnet-4-20250514")
    assert isinstance(model, AnthropicModel)
    assert model.model_name == "claude-sonnet-4-20250514"
