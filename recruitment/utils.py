import re

SCRIPT_TAG_RE = re.compile(r"<\s*script[^>]*>.*?<\s*/\s*script\s*>", re.IGNORECASE | re.DOTALL)


def sanitize_text(value: str) -> str:
    if value is None:
        return value
    return str(value).strip()


def sanitize_rich_text(value: str) -> str:
    if value is None:
        return value
    cleaned = SCRIPT_TAG_RE.sub("", str(value))
    return cleaned.strip()


def sanitize_custom_responses(responses) -> list:
    """Normalize question/answer pairs; entries without a question are dropped."""
    cleaned = []
    for item in responses or []:
        if not isinstance(item, dict):
            continue
        question = sanitize_text(item.get("question"))
        if not question:
            continue
        cleaned.append({"question": question, "answer": sanitize_rich_text(item.get("answer") or "")})
    return cleaned
