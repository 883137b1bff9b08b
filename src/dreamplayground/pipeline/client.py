"""Client for the remote generative service.

Wraps the three logical remote operations (title + panorama + scene plan,
clarifying questions, analysis) behind plain async methods. Model output is
coerced into typed data here; callers never see a parse exception.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage
from pydantic import ValidationError

from dreamplayground.config import MAX_QUESTIONS
from dreamplayground.models import (
    ClarifyingQuestion,
    DreamAnalysis,
    GeneratedDream,
    QAEntry,
    SceneObject,
)
from dreamplayground.normalize import normalize
from dreamplayground.observability.logging import get_logger
from dreamplayground.pipeline.errors import ContentSafetyError, DreamGenerationError
from dreamplayground.prompts import PromptCompiler
from dreamplayground.providers.base import ProviderContentSafetyError
from dreamplayground.providers.content import extract_text, is_safety_block
from dreamplayground.providers.image import ImageContentPolicyError, ImageResult
from dreamplayground.scene import sanitize_scene
from dreamplayground.titles import sanitize_title

if TYPE_CHECKING:
    from dreamplayground.providers.factory import ChatModelFactory
    from dreamplayground.providers.image import ImageStreamProvider

log = get_logger(__name__)

FALLBACK_SUMMARY = "A reflective take on your dream could not be structured automatically."
FALLBACK_CONFIDENCE = 0.4
FALLBACK_SUMMARY_LENGTH = 600

_LEADING_NOISE = re.compile(r"^[^A-Za-z0-9{\[]+")
_PARAGRAPH_BREAK = re.compile(r"\n+")


class NoImageDataError(Exception):
    """Raised when an image stream ends without any image chunk."""


def synthesize_analysis(raw_text: str) -> DreamAnalysis:
    """Build a minimal analysis from unstructured model text.

    Keeps the flow moving when the analyst ignores the JSON instructions:
    the first three paragraphs become both summary and narrative.
    """
    paragraphs = _PARAGRAPH_BREAK.split(_LEADING_NOISE.sub("", raw_text))
    summary = " ".join(paragraphs[:3])[:FALLBACK_SUMMARY_LENGTH] or FALLBACK_SUMMARY
    return DreamAnalysis(
        summary=summary,
        confidence=FALLBACK_CONFIDENCE,
        narrative=summary,
    )


def _is_safety_failure(error: BaseException) -> bool:
    if isinstance(error, (ImageContentPolicyError, ProviderContentSafetyError)):
        return True
    return "SAFETY" in str(error).upper()


class DreamClient:
    """Sequences remote calls for one dream and normalizes their output.

    Args:
        model_for: Factory returning a chat model for ``(temperature,
            max_tokens, thinking_budget)``.
        image_provider: Streamed panorama backend.
        compiler: Prompt compiler (defaults to the packaged templates).
        max_questions: Cap on clarifying questions, at most 3.
        provider_name: Label used in provider errors and logs.
    """

    def __init__(
        self,
        model_for: ChatModelFactory,
        image_provider: ImageStreamProvider,
        compiler: PromptCompiler | None = None,
        max_questions: int = MAX_QUESTIONS,
        provider_name: str = "llm",
    ) -> None:
        self._model_for = model_for
        self._image_provider = image_provider
        self._compiler = compiler or PromptCompiler()
        self._max_questions = max(0, min(MAX_QUESTIONS, max_questions))
        self._provider_name = provider_name

    async def _complete(self, template: str, context: dict[str, Any]) -> str:
        """Run one text request and return its stripped text.

        Raises:
            ProviderContentSafetyError: If the response was withheld on safety grounds.
        """
        prompt = self._compiler.compile(template, context)
        model = self._model_for(prompt.temperature, prompt.max_tokens, prompt.thinking_budget)

        log.debug("text_request", template=template, prompt_length=len(prompt.text))
        response = await model.ainvoke([HumanMessage(content=prompt.text)])

        metadata = getattr(response, "response_metadata", None) or {}
        finish_reason = metadata.get("finish_reason")
        if is_safety_block(finish_reason):
            raise ProviderContentSafetyError(
                self._provider_name, f"Response blocked: SAFETY ({finish_reason})"
            )

        text = extract_text(response.content).strip()
        log.debug("text_response", template=template, length=len(text))
        return text

    # -- Dreamscape -------------------------------------------------------

    async def generate_title(self, description: str) -> str:
        """Ask for a short title and sanitize it to a single line."""
        raw = await self._complete("title", {"description": description})
        title = sanitize_title(raw)
        log.info("title_generated", title=title)
        return title

    async def plan_scene(self, title: str, description: str) -> list[SceneObject] | None:
        """Ask for a primitive scene plan; any failure yields None."""
        try:
            raw = await self._complete("scene", {"title": title, "description": description})
            parsed = normalize(raw, expect=list)
            if parsed is None:
                log.warning("scene_plan_unparseable", preview=raw[:120])
                return None
            objects = sanitize_scene(parsed)
        except Exception as e:
            log.warning("scene_plan_failed", error=str(e))
            return None

        log.info("scene_plan_ready", objects=len(objects))
        return objects

    async def _stream_first_image(self, prompt: str) -> ImageResult:
        """Consume the image stream up to the first chunk carrying image data."""
        stream = self._image_provider.stream(prompt)
        try:
            async for chunk in stream:
                if chunk.image is not None:
                    log.info(
                        "image_received",
                        content_type=chunk.image.content_type,
                        size_bytes=chunk.image.size_bytes,
                    )
                    return chunk.image
                if chunk.text:
                    log.info("image_stream_text", text=chunk.text)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        raise NoImageDataError("No image data received from the image model.")

    async def generate_dreamscape(self, description: str) -> GeneratedDream:
        """Generate title, panorama and scene plan for a dream.

        The scene plan is best-effort; its failure still returns the image.

        Raises:
            ContentSafetyError: If the service refused the dream.
            DreamGenerationError: On any other failure.
        """
        try:
            title = await self.generate_title(description)
            prompt = self._compiler.compile(
                "panorama", {"title": title, "description": description}
            )
            image = await self._stream_first_image(prompt.text)
            scene_objects = await self.plan_scene(title, description)
            return GeneratedDream(image=image, title=title, scene_objects=scene_objects)
        except Exception as e:
            log.error("dreamscape_failed", error=str(e), error_type=type(e).__name__)
            if _is_safety_failure(e):
                raise ContentSafetyError() from e
            raise DreamGenerationError() from e

    # -- Clarification ----------------------------------------------------

    async def get_clarifying_questions(self, description: str) -> list[ClarifyingQuestion]:
        """Ask for up to three clarifying questions.

        Unparseable output yields an empty list. Entries without question
        text are dropped; missing or duplicate ids become ``q<n>``.
        """
        raw = await self._complete("clarify", {"description": description})
        parsed = normalize(raw)
        if isinstance(parsed, dict) and isinstance(parsed.get("questions"), list):
            parsed = parsed["questions"]
        if not isinstance(parsed, list):
            log.info("clarify_unparseable", preview=raw[:120])
            return []

        questions: list[ClarifyingQuestion] = []
        seen_ids: set[str] = set()
        for index, item in enumerate(parsed[: self._max_questions]):
            if not isinstance(item, dict):
                continue
            data = dict(item)
            qid = data.get("id")
            if not isinstance(qid, str) or not qid.strip() or qid in seen_ids:
                qid = f"q{index + 1}"
            while qid in seen_ids:
                qid = f"{qid}-{index + 1}"
            data["id"] = qid
            try:
                question = ClarifyingQuestion.model_validate(data)
            except ValidationError as e:
                log.debug("clarify_question_skipped", index=index, error=str(e))
                continue
            seen_ids.add(question.id)
            questions.append(question)

        log.info("clarify_questions_ready", count=len(questions))
        return questions

    # -- Analysis ---------------------------------------------------------

    async def analyze_dream(self, description: str, transcript: list[QAEntry]) -> DreamAnalysis:
        """Analyze the dream with its clarification transcript.

        Output that cannot be structured degrades to ``synthesize_analysis``.
        Remote failures propagate.
        """
        raw = await self._complete(
            "analysis", {"description": description, "transcript": transcript}
        )
        parsed = normalize(raw, expect=dict)
        if parsed is not None:
            try:
                analysis = DreamAnalysis.model_validate(parsed)
            except ValidationError as e:
                log.warning("analysis_invalid", error=str(e))
            else:
                log.info("analysis_ready", confidence=analysis.confidence)
                return analysis

        log.warning("analysis_fallback", preview=raw[:120])
        return synthesize_analysis(raw)
