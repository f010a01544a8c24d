"""Reply texts sent back to the chat."""
from typing import Any, Dict, Iterable, Optional

from apkara.record import format_field_name

DONE = "Done ✅"
COMMAND_ERROR = "❌ Error processing the command"
NO_QUOTED_MESSAGE = "❌ Please reply to a message with 'ap kara' command"
NO_QUOTED_TEXT = "❌ Could not extract text from the original message"

# Weights closer than this are the same load
WEIGHT_TOLERANCE = 0.01


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _fmt(value: float) -> str:
    text = str(value)
    if "." in text and "e" not in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def success_message(requested_weight: Any, processed_data: Optional[Dict[str, Any]] = None) -> str:
    """Plain acknowledgement, or actual-vs-requested when the weights differ."""
    processed_data = processed_data or {}
    requested = _to_float(requested_weight)
    actual = _to_float(processed_data.get("actual_quantity") or processed_data.get("weight") or requested_weight)

    if requested is None or actual is None or abs(requested - actual) < WEIGHT_TOLERANCE:
        return DONE
    return f"AP done for {_fmt(actual)} MT to load {_fmt(requested)} MT ✅"


def failure_message(detail: Optional[str]) -> str:
    detail = detail or "An unexpected error occurred while processing your request."
    return f"❌ *Processing Failed*\n\n*Error:* {detail}"


def missing_fields_message(missing: Iterable[str]) -> str:
    return "❌ *Details Missing*\n\nMissing: " + ", ".join(format_field_name(name) for name in missing)


def queued_message(position: int) -> str:
    return f"⏳ *Processing* - Queue #{position}"


def status_message(status: str, data: Optional[Dict[str, Any]] = None) -> str:
    """Canned text for a status keyword sent by the processor."""
    data = data or {}

    if status == "processing":
        return "⏳ Processing your data..."
    if status == "completed":
        text = "✅ Processing completed successfully!"
        if data.get("result"):
            text += f"\n\n📊 *Result:*\n{data['result']}"
        return text
    if status == "error":
        text = "❌ An error occurred during processing"
        if data.get("error"):
            text += f"\n\n*Error:* {data['error']}"
        return text
    if status == "custom":
        return data.get("message") or "Status update"
    return f"📋 Status: {status}"
