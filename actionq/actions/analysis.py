"""
Analysis result envelope.

The analysis service answers with a JSON object holding a summary plus the
suggested ``actions`` list (text, metrics and log analyses add their own
fields next to it). This module extracts that list and hands it to the
execution driver unmodified; validation of each item happens per action.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from actionq.observability.logging import get_logger

logger = get_logger(__name__)

_CODE_FENCE_OPEN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*([\}\]])")


class AnalysisResult(BaseModel):
    """
    Analysis service output.

    Only ``actions`` matters for execution. Variant-specific fields
    (sentiment/urgency for text, stats/anomalies for metrics, level/error_code
    for logs) are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    analysis: str = ""
    summary: str = ""
    suggestions: list[str] = Field(default_factory=list)
    # Unbounded: some producers report a percentage
    confidence: float | None = None
    actions: list[Any] = Field(default_factory=list)


def extract_json(text: str) -> Any:
    """
    Parse model output that may be wrapped in a markdown code block or carry
    trailing commas.

    Raises:
        ValueError: If no JSON document can be recovered
    """
    text = _CODE_FENCE_OPEN.sub("", text).replace("```", "").strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Analysis JSON parse error (attempting repair): %s", e)

        match = re.search(r"[\{\[].*[\}\]]", text, re.DOTALL)
        if not match:
            raise

        repaired = _TRAILING_COMMA.sub(r"\1", match.group(0))
        try:
            result = json.loads(repaired)
        except json.JSONDecodeError as repair_error:
            logger.warning("Analysis JSON repair failed: %s", repair_error)
            raise e from None

        logger.info("Analysis JSON repair succeeded")
        return result


def parse_analysis_result(payload: str | bytes | dict[str, Any] | list[Any]) -> AnalysisResult:
    """
    Build an AnalysisResult from service output.

    A bare JSON array is taken as the action list itself.

    Raises:
        ValueError: Malformed JSON or an envelope that isn't an object/array
            (pydantic's ValidationError is a ValueError)
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        payload = extract_json(payload)

    if isinstance(payload, list):
        return AnalysisResult(actions=payload)
    if not isinstance(payload, dict):
        raise ValueError(f"analysis result must be a JSON object or array, got {type(payload).__name__}")

    return AnalysisResult.model_validate(payload)
