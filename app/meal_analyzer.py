"""Analyze meal images using the OpenAI Vision API.

The analysis and update entry points never fail from the caller's point of
view, apart from rejecting a malformed image up front: a missing API key, a
provider error or unparseable output all produce a deterministic fallback
record wrapped in an `AnalysisResult` that says so.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Mapping

import openai

from app import config
from app.fallback import basic_update, fallback_analysis
from app.json_extraction import AnalysisParseError, extract_clean_json, parse_partial_json
from app.nutrition import NutritionRecord, normalize_analysis
from app.prompts import (
    analysis_user_text,
    build_analysis_prompt,
    build_update_prompt,
    update_system_prompt,
)

logger = logging.getLogger(__name__)

_BASE64_RE = re.compile(r"[A-Za-z0-9+/]*={0,2}")

TEXT_UNAVAILABLE_MESSAGE = "AI text generation not available - no API key configured"
NO_TEXT_GENERATED_MESSAGE = "No response generated"


class ImageValidationError(ValueError):
    """Raised when the image payload is empty or not valid base64."""
    pass


# status code -> (status class, user-facing message)
_PROVIDER_STATUS_MESSAGES: dict[int, tuple[str, str]] = {
    400: ("bad_request", "Invalid image data or request format"),
    401: ("authentication", "OpenAI API authentication failed"),
    429: ("rate_limit", "OpenAI API rate limit exceeded. Please try again later."),
    500: ("unavailable", "OpenAI service temporarily unavailable"),
}


class ProviderError(Exception):
    """Raised when the OpenAI API call fails.

    Attributes:
        status_code: HTTP status reported by the provider, if any
        status_class: bad_request, authentication, rate_limit, unavailable or other
        user_message: Message safe to show to an end user
    """

    def __init__(self, status_code: int | None, detail: str = ""):
        self.status_code = status_code
        self.status_class, self.user_message = _PROVIDER_STATUS_MESSAGES.get(
            status_code, ("other", "OpenAI request failed")
        )
        super().__init__(detail or self.user_message)

    @classmethod
    def from_openai(cls, error: openai.OpenAIError) -> "ProviderError":
        return cls(getattr(error, "status_code", None), str(error))


@dataclass(frozen=True)
class Configured:
    """Provider settings when an API key is available."""
    client: openai.OpenAI
    model: str = "gpt-4o"


@dataclass(frozen=True)
class Unconfigured:
    """No provider credentials; every analysis uses the fallback."""
    pass


ProviderConfig = Configured | Unconfigured


def provider_from_api_key(
    api_key: str | None,
    model: str = config.OPENAI_MODEL,
    timeout: float = config.OPENAI_TIMEOUT_S,
) -> ProviderConfig:
    """Create the provider configuration for ``api_key``.

    The client is built with retries disabled: each request gets exactly one
    provider call.
    """
    if not api_key:
        logger.warning("No OpenAI API key configured, meal analysis will use fallback results")
        return Unconfigured()
    client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
    return Configured(client=client, model=model)


@dataclass
class AnalysisResult:
    """A nutrition record and whether it came from the provider."""
    record: NutritionRecord
    used_fallback: bool = False
    reason: str | None = None  # why the fallback was used

    def to_dict(self) -> dict[str, Any]:
        return self.record.to_dict()


def clean_base64_image(image_base64: str) -> str:
    """Strip a data URI prefix and validate the base64 body.

    Raises:
        ImageValidationError: If the payload is empty or not base64
    """
    if not image_base64 or not image_base64.strip():
        raise ImageValidationError("Image data is required")

    clean = image_base64
    if image_base64.startswith("data:image/"):
        clean = image_base64.split(",", 1)[1] if "," in image_base64 else ""
        if not clean:
            raise ImageValidationError("Image data is required")

    if not _BASE64_RE.fullmatch(clean):
        raise ImageValidationError("Invalid base64 image format")
    return clean


class MealAnalyzer:
    """Nutrition analysis of meal photos, with deterministic fallbacks."""

    def __init__(self, provider: ProviderConfig, surface_provider_errors: bool = False):
        """Initialize the analyzer.

        Args:
            provider: Configured(client) or Unconfigured()
            surface_provider_errors: Raise ProviderError for API failures
                instead of returning the fallback record
        """
        self.provider = provider
        self.surface_provider_errors = surface_provider_errors

    @classmethod
    def from_config(cls) -> "MealAnalyzer":
        return cls(provider_from_api_key(config.OPENAI_API_KEY))

    def analyze_meal_image(
        self,
        image_base64: str,
        locale: str = config.DEFAULT_LOCALE,
        update_text: str | None = None,
        edited_ingredients: list[Any] | None = None,
    ) -> AnalysisResult:
        """Analyze a meal photo.

        Args:
            image_base64: JPEG image as base64, optionally as a data URI
            locale: "hebrew" or "english"
            update_text: Extra information from the user
            edited_ingredients: Ingredients corrected by the user

        Returns:
            AnalysisResult; used_fallback is True if the provider was not used
            or failed

        Raises:
            ImageValidationError: If the image payload is empty or malformed
            ProviderError: Only when surface_provider_errors is enabled
        """
        edited_ingredients = edited_ingredients or []
        logger.info(
            "Starting meal analysis",
            extra={
                "locale": locale,
                "has_update_text": bool(update_text),
                "edited_ingredient_count": len(edited_ingredients),
            },
        )

        if isinstance(self.provider, Unconfigured):
            logger.info("No OpenAI provider configured, using fallback analysis")
            return AnalysisResult(
                record=fallback_analysis(locale),
                used_fallback=True,
                reason="provider_unconfigured",
            )

        clean_base64 = clean_base64_image(image_base64)
        logger.debug("Image validation passed", extra={"base64_length": len(clean_base64)})

        system_prompt = build_analysis_prompt(locale, update_text, edited_ingredients)

        try:
            content = self._complete(
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": analysis_user_text(locale, update_text)},
                            {
                                "type": "image_url",
                                "image_url": {
                                    "url": f"data:image/jpeg;base64,{clean_base64}",
                                    "detail": "high",
                                },
                            },
                        ],
                    },
                ],
                max_tokens=config.ANALYSIS_MAX_TOKENS,
                temperature=config.ANALYSIS_TEMPERATURE,
            )
            record = self._parse_record(content)
        except ProviderError as e:
            logger.exception("OpenAI API error during meal analysis", extra={"status_class": e.status_class})
            if self.surface_provider_errors:
                raise
            return AnalysisResult(record=fallback_analysis(locale), used_fallback=True, reason=e.user_message)
        except AnalysisParseError as e:
            logger.exception("Could not parse meal analysis response, using fallback")
            return AnalysisResult(record=fallback_analysis(locale), used_fallback=True, reason=str(e))
        except Exception as e:
            logger.exception("Unexpected error during meal analysis, using fallback")
            return AnalysisResult(record=fallback_analysis(locale), used_fallback=True, reason=str(e))

        logger.info("Meal analysis complete", extra={"meal_name": record.name, "confidence": record.confidence})
        return AnalysisResult(record=record)

    def update_meal_analysis(
        self,
        original_analysis: NutritionRecord | Mapping[str, Any],
        update_text: str,
        locale: str = config.DEFAULT_LOCALE,
    ) -> AnalysisResult:
        """Revise an existing analysis with the user's correction.

        Falls back to keyword-based `basic_update()` when the provider is not
        configured or anything goes wrong. Never raises.
        """
        logger.info("Updating meal analysis", extra={"locale": locale})

        if isinstance(self.provider, Unconfigured):
            logger.info("No OpenAI provider configured, using basic update")
            return AnalysisResult(
                record=basic_update(original_analysis, update_text),
                used_fallback=True,
                reason="provider_unconfigured",
            )

        original = (
            original_analysis.to_dict()
            if isinstance(original_analysis, NutritionRecord)
            else original_analysis
        )

        try:
            content = self._complete(
                messages=[
                    {"role": "system", "content": update_system_prompt(locale)},
                    {"role": "user", "content": build_update_prompt(original, update_text, locale)},
                ],
                max_tokens=config.UPDATE_MAX_TOKENS,
                temperature=config.UPDATE_TEMPERATURE,
            )
            record = self._parse_record(content)
        except Exception as e:
            logger.exception("Error updating meal analysis, using basic update")
            reason = e.user_message if isinstance(e, ProviderError) else str(e)
            return AnalysisResult(
                record=basic_update(original_analysis, update_text),
                used_fallback=True,
                reason=reason,
            )

        logger.info("Meal analysis updated", extra={"meal_name": record.name})
        return AnalysisResult(record=record)

    def generate_text(self, prompt: str, max_tokens: int = 1000) -> str:
        """Plain text completion. Provider errors propagate to the caller.

        Raises:
            ProviderError: If the OpenAI API call fails
        """
        if isinstance(self.provider, Unconfigured):
            return TEXT_UNAVAILABLE_MESSAGE

        content = self._complete(
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=config.TEXT_TEMPERATURE,
        )
        return content or NO_TEXT_GENERATED_MESSAGE

    def _complete(self, messages: list[dict[str, Any]], max_tokens: int, temperature: float) -> str | None:
        """Make one chat completion call and return the message content."""
        logger.info("Calling OpenAI API", extra={"model": self.provider.model, "max_tokens": max_tokens})
        t0 = time.monotonic()
        try:
            response = self.provider.client.chat.completions.create(
                model=self.provider.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except (openai.APIStatusError, openai.APIConnectionError) as e:
            raise ProviderError.from_openai(e) from e

        elapsed = round(time.monotonic() - t0, 2)
        logger.info("OpenAI API call successful", extra={"elapsed_s": elapsed})

        if not response.choices:
            return None
        return response.choices[0].message.content

    def _parse_record(self, content: str | None) -> NutritionRecord:
        """Extract, parse and normalize the JSON object in ``content``.

        Raises:
            AnalysisParseError: If there is no content or it is not a JSON object
        """
        if not content:
            raise AnalysisParseError("No response from OpenAI")

        logger.debug("Analysis response received", extra={"content_preview": content[:200]})
        data = parse_partial_json(extract_clean_json(content))
        if not isinstance(data, dict):
            raise AnalysisParseError(f"Expected a JSON object, got {type(data).__name__}")
        return normalize_analysis(data)
