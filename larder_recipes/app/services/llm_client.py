import json
import logging
import re
from functools import lru_cache
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from larder_recipes.app.core.config import get_settings
from larder_recipes.app.core.errors import NormalizationFailed
from larder_recipes.app.services.url_parsing import (
    IngredientTriple,
    parse_amount,
    resolve_unit_alias,
    unit_values,
)

logger = logging.getLogger(__name__)


class IngredientNormalizer(Protocol):
    async def normalize(self, lines: Sequence[str], system_instruction: str) -> List[IngredientTriple]:
        """Return exactly one triple per input line, or raise NormalizationFailed."""
        ...


def build_ingredient_system_instruction(units: Sequence[str]) -> str:
    allowed = ", ".join(units)
    return "\n".join(
        [
            "Normalize these ingredient strings into a JSON array of objects with fields:",
            "- amount: number or null",
            f"- unit: must be one of {allowed}.",
            "- name: normalized ingredient name; strip preparation phrases, sizes and extra "
            'descriptors, keep adjectives needed to identify the ingredient (e.g., "red onion", '
            '"whole milk").',
            "- The unit MUST be from the allowed list above. Do NOT output any other unit.",
            "- If the input unit is not in the allowed list, convert the amount numerically to "
            "the closest allowed unit.",
            "- Maintain 3 digits of accuracy in conversions.",
            '- For containers with a size (e.g., "2 (8-1/2 oz.) packages"), multiply and use '
            "the size unit.",
            "- For collective nouns (e.g., lentils, pea, nuts) make ingredient plural. Otherwise "
            "for whole items (onion, carrot) make ingredient singular.",
            "- If the unit is EACH, CLOVE, HEAD, STALK, SPRIG, LEAF, or PIECE, use singular "
            'names (e.g., "jalapeno pepper", "carrot", "white onion").',
            "- Otherwise, keep natural plural forms for mass/collective items (e.g., lentils, "
            "chickpeas, noodles).",
            "- Ounces, when used with dry ingredients should be WEIGHT_OUNCE. When used with "
            "liquid ingredients it is FLUID_OUNCE.",
            "- Return JSON only, no extra text.",
        ]
    )


@lru_cache
def get_ingredient_system_instruction() -> str:
    """System instruction built once from the full canonical unit list."""
    return build_ingredient_system_instruction(unit_values())


def _strip_code_fence(text: str) -> str:
    txt = text.strip()
    txt = re.sub(r"^```[a-zA-Z0-9_-]*\s*", "", txt, count=1)
    return re.sub(r"\s*```$", "", txt, count=1).strip()


def extract_json_array(content: str) -> List[Any]:
    """Pull the JSON array out of an assistant reply.

    Tolerates code fences, prose around the array, and an object wrapper
    such as {"ingredients": [...]}.
    """
    cleaned = _strip_code_fence(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("[")
        end = cleaned.rfind("]")
        if start == -1 or end <= start:
            raise NormalizationFailed("response did not contain a JSON array")
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise NormalizationFailed(f"invalid JSON in response: {exc}") from exc

    if isinstance(data, dict):
        for key in ("ingredients", "results", "items"):
            if isinstance(data.get(key), list):
                return data[key]
        raise NormalizationFailed("response object did not contain an ingredient array")
    if not isinstance(data, list):
        raise NormalizationFailed("response was not a JSON array")
    return data


def coerce_triple(entry: Any) -> IngredientTriple:
    """Validate one normalizer entry; unknown units become None."""
    if isinstance(entry, IngredientTriple):
        return entry
    if not isinstance(entry, dict):
        raise NormalizationFailed(f"malformed entry: {entry!r}")

    amount = parse_amount(entry.get("amount"))
    raw_unit = entry.get("unit")
    unit = resolve_unit_alias(raw_unit) if raw_unit is not None else None
    if raw_unit not in (None, "") and unit is None:
        logger.warning("Normalizer returned unknown unit %r; storing null", raw_unit)
    name = entry.get("name")
    if name is not None and not isinstance(name, str):
        raise NormalizationFailed(f"malformed name in entry: {entry!r}")
    return IngredientTriple(amount=amount, unit=unit, name=name.strip() if name else None)


class LlmIngredientNormalizer:
    """Ingredient normalizer backed by the OpenAI-compatible LLM proxy."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.llm_base_url or "").rstrip("/")
        self.model_name = model_name or settings.llm_model_name
        self.timeout_seconds = timeout_seconds or settings.llm_timeout_seconds

    def _headers(self) -> Dict[str, str]:
        settings = get_settings()
        headers = {"Content-Type": "application/json"}
        if settings.llm_app_id and settings.llm_app_key:
            headers["X-Larder-App-Id"] = settings.llm_app_id
            headers["X-Larder-App-Key"] = settings.llm_app_key
        return headers

    async def normalize(self, lines: Sequence[str], system_instruction: str) -> List[IngredientTriple]:
        if not lines:
            return []
        if not self.base_url:
            raise NormalizationFailed("LLM_BASE_URL is not configured")

        settings = get_settings()
        payload = {
            "model": self.model_name,
            "temperature": 0.0,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": "Ingredients:\n" + json.dumps(list(lines), indent=2)},
            ],
            "max_tokens": settings.llm_ingredient_max_tokens,
            "stream": False,
        }
        timeout = httpx.Timeout(self.timeout_seconds, read=self.timeout_seconds, connect=10.0)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.post(
                    f"{self.base_url}/v1/chat/completions",
                    json=payload,
                    headers=self._headers(),
                )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("Ingredient normalization request failed: %s", exc)
            raise NormalizationFailed(f"request failed: {exc}") from exc
        except ValueError as exc:
            raise NormalizationFailed("proxy returned a non-JSON body") from exc

        if isinstance(data, dict) and "error" in data:
            error_info = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
            error_type = error_info.get("type", "unknown_error")
            error_message = str(error_info.get("message", "Unknown error"))
            logger.warning(
                "LLM proxy returned error in ingredient normalization: type=%s, message=%s",
                error_type,
                error_message[:500],
            )
            raise NormalizationFailed(f"proxy error ({error_type}): {error_message}")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise NormalizationFailed("response missing message content") from exc
        if not content:
            raise NormalizationFailed("response missing message content")

        entries = extract_json_array(content if isinstance(content, str) else str(content))
        if len(entries) != len(lines):
            raise NormalizationFailed(
                f"expected {len(lines)} results, got {len(entries)}"
            )
        results = [coerce_triple(entry) for entry in entries]
        logger.info("Normalized %d ingredient lines", len(results))
        return results
