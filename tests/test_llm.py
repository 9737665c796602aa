"""Tests for the OpenAI-backed classifier and receipt reader."""

import json
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from bubu.domain.intents import Intent
from bubu.llm.classifier import OpenAIIntentClassifier
from bubu.llm.prompts import build_tools
from bubu.llm.receipts import OpenAIReceiptExtractor, parse_receipt


class FakeCompletions:
    """Stands in for client.chat.completions and records requests."""

    def __init__(self, message):
        self.message = message
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=self.message)])


def fake_client(message) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(message)))


def tool_message(name: str, arguments: str) -> SimpleNamespace:
    call = SimpleNamespace(function=SimpleNamespace(name=name, arguments=arguments))
    return SimpleNamespace(content=None, tool_calls=[call])


def test_every_intent_but_unknown_has_a_tool():
    """Test the tool schema offers one function per classifiable intent."""
    names = {tool["function"]["name"] for tool in build_tools(["Comida"])}
    assert names == {intent.value for intent in Intent} - {Intent.UNKNOWN.value}


def test_category_enum_follows_directory():
    """Test known category names are offered as an enum."""
    register = next(t for t in build_tools(["Comida", "Hogar"]) if t["function"]["name"] == "register_transaction")
    assert register["function"]["parameters"]["properties"]["category"]["enum"] == ["Comida", "Hogar"]


def test_classify_tool_call():
    """Test a tool call becomes an intent with its arguments."""
    classifier = OpenAIIntentClassifier(api_key="test-key", category_names=lambda: ["Comida"])
    classifier.client = fake_client(tool_message("register_transaction", json.dumps({"amount": 350, "description": "tacos"})))

    result = classifier.classify("gasté 350 en tacos", "5551234567")

    assert result.intent == Intent.REGISTER_TRANSACTION
    assert result.get("amount") == 350
    request = classifier.client.chat.completions.requests[0]
    assert "Comida" in request["messages"][0]["content"]
    assert request["messages"][1] == {"role": "user", "content": "gasté 350 en tacos"}


def test_classify_plain_answer_is_conversation():
    """Test a reply without a tool call is treated as conversation."""
    classifier = OpenAIIntentClassifier(api_key="test-key")
    classifier.client = fake_client(SimpleNamespace(content="¡Hola!", tool_calls=None))

    assert classifier.classify("hola", "5551234567").intent == Intent.GENERAL_CONVERSATION


@pytest.mark.parametrize(
    "name,arguments",
    [("register_transaction", "{not json"), ("launch_rocket", "{}")],
)
def test_classify_unusable_tool_call(name, arguments):
    """Test broken arguments and unknown tools map to unknown."""
    classifier = OpenAIIntentClassifier(api_key="test-key")
    classifier.client = fake_client(tool_message(name, arguments))

    assert classifier.classify("???", "5551234567").intent == Intent.UNKNOWN


def test_extract_receipt():
    """Test the JSON object is pulled out of the model's answer."""
    extractor = OpenAIReceiptExtractor(api_key="test-key")
    answer = 'Aquí está:\n```json\n{"amount": 89.5, "merchant": "Farmacia", "confidence": 85}\n```'
    extractor.client = fake_client(SimpleNamespace(content=answer, tool_calls=None))

    receipt = extractor.extract(b"image", "image/png")

    assert receipt.amount == Decimal("89.5")
    assert receipt.merchant == "Farmacia"
    assert receipt.confidence_score == 85
    image_part = extractor.client.chat.completions.requests[0]["messages"][0]["content"][1]
    assert image_part["image_url"]["url"].startswith("data:image/png;base64,")


def test_extract_receipt_without_json():
    """Test an answer with no JSON is an error."""
    extractor = OpenAIReceiptExtractor(api_key="test-key")
    extractor.client = fake_client(SimpleNamespace(content="No puedo leer la imagen", tool_calls=None))

    with pytest.raises(ValueError):
        extractor.extract(b"image", "image/jpeg")


def test_parse_receipt_drops_unreadable_fields():
    """Test bad amounts, dates and scores are ignored."""
    receipt = parse_receipt({"amount": "NaN", "date": "el martes", "confidence": "alta", "merchant": "OXXO"})

    assert receipt.amount is None
    assert receipt.date is None
    assert receipt.confidence_score == 0
    assert receipt.merchant == "OXXO"

    dated = parse_receipt({"amount": "120.00", "date": "2024-03-01", "confidence": 90})
    assert dated.date == date(2024, 3, 1)
    assert dated.amount == Decimal("120.00")
