"""Prompt templates for AI-assisted matching of inquiries to inventory."""

from __future__ import annotations

SYSTEM_PROMPT = (
    "You are an AI assistant for a lost and found system. Analyze the user's lost item inquiry "
    "and compare it against the inventory to find potential matches. Return a JSON array of "
    "matches with confidence scores (0-100). Only return items with confidence >= {min_confidence}. "
    'Format: [{{"itemId": "<inventory id>", "confidence": 85, "reasons": ["reason1", "reason2"]}}]'
)


def _value(value, fallback: str) -> str:
    if value is None:
        return fallback
    text = str(getattr(value, "value", value)).strip()
    return text or fallback


def describe_inquiry(inquiry) -> str:
    return "\n".join([
        f"Title: {_value(inquiry.title, 'Not specified')}",
        f"Description: {_value(inquiry.description, 'Not specified')}",
        f"Category: {_value(inquiry.category, 'Not specified')}",
        f"Color: {_value(inquiry.color, 'Not specified')}",
        f"Brand: {_value(inquiry.brand, 'Not specified')}",
        f"Distinguishing Features: {_value(inquiry.distinguishing_features, 'None')}",
        f"Location Lost: {_value(inquiry.location_lost, 'Not specified')}",
        f"Date Lost: {_value(inquiry.date_lost, 'Not specified')}",
    ])


def describe_item(position: int, item) -> str:
    return "\n".join([
        f"Item {position} (ID: {item.id}):",
        f"- Name: {_value(item.name, 'N/A')}",
        f"- Description: {_value(item.description, 'N/A')}",
        f"- Category: {_value(item.category, 'N/A')}",
        f"- Color: {_value(item.color, 'N/A')}",
        f"- Brand: {_value(item.brand, 'N/A')}",
        f"- Features: {_value(item.distinguishing_features, 'N/A')}",
        f"- Location Found: {_value(item.location_found, 'N/A')}",
        f"- Date Found: {_value(item.date_found, 'N/A')}",
    ])


def build_messages(inquiry, items, min_confidence: float = 40) -> list[dict]:
    inventory = "\n\n".join(describe_item(i, item) for i, item in enumerate(items, start=1))
    user = (
        f"Lost Item Inquiry:\n{describe_inquiry(inquiry)}\n\n"
        f"Inventory Items:\n{inventory}\n\n"
        "Return JSON array of potential matches."
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT.format(min_confidence=f"{min_confidence:g}")},
        {"role": "user", "content": user},
    ]
