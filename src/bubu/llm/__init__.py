"""OpenAI-backed intent classifier and receipt extractor."""

from bubu.llm.classifier import OpenAIIntentClassifier
from bubu.llm.receipts import OpenAIReceiptExtractor

__all__ = ["OpenAIIntentClassifier", "OpenAIReceiptExtractor"]
