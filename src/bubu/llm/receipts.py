import base64
import json
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from loguru import logger
from openai import OpenAI

from bubu.domain.collaborators import ReceiptData, ReceiptExtractor
from bubu.llm.prompts import RECEIPT_PROMPT
from bubu.utils.date_parser import parse_date

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class OpenAIReceiptExtractor(ReceiptExtractor):
    """Reads receipts with an OpenAI vision model."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", base_url: Optional[str] = None):
        self.client = OpenAI(api_key=api_key, base_url=base_url)
        self.model = model

    def extract(self, image: bytes, mime_type: str) -> ReceiptData:
        encoded = base64.b64encode(image).decode("ascii")
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": RECEIPT_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{mime_type};base64,{encoded}", "detail": "high"},
                        },
                    ],
                }
            ],
            max_tokens=500,
            temperature=0.2,
        )
        raw = response.choices[0].message.content or ""
        logger.debug("Receipt raw response: {}", raw)

        match = _JSON_OBJECT.search(raw)
        if match is None:
            raise ValueError("Receipt response did not contain JSON")
        data = json.loads(match.group(0))
        return parse_receipt(data)


def parse_receipt(data: dict) -> ReceiptData:
    """Build ReceiptData from the model's JSON, dropping unreadable fields."""
    amount = None
    if data.get("amount") is not None:
        try:
            amount = Decimal(str(data["amount"]))
        except InvalidOperation:
            logger.warning("Ignoring unreadable receipt amount {}", data["amount"])
        if amount is not None and not amount.is_finite():
            amount = None

    receipt_date = None
    if data.get("date"):
        try:
            receipt_date = parse_date(str(data["date"]))
        except ValueError:
            logger.warning("Ignoring unreadable receipt date {}", data["date"])

    try:
        confidence = int(data.get("confidence") or 0)
    except (TypeError, ValueError):
        confidence = 0

    return ReceiptData(
        amount=amount,
        merchant=data.get("merchant"),
        category=data.get("category"),
        date=receipt_date,
        description=data.get("description"),
        confidence_score=confidence,
    )
