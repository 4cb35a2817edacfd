"""Orchestrates validation, prompt composition, completion, and parsing."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from innovative_sphere.completion import CompletionClient
from innovative_sphere.composer import PromptComposer
from innovative_sphere.errors import GenerationError, ValidationError
from innovative_sphere.models import MAX_USER_INTERESTS, GenerationRequest, Idea
from innovative_sphere.parser import parse_idea_fields

logger = logging.getLogger(__name__)

ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_id_random = random.SystemRandom()


def generate_idea_id(now: datetime | None = None) -> str:
    """Return ``idea_<epoch-ms>_<9 base36 chars>``."""
    millis = int((now.timestamp() if now else time.time()) * 1000)
    suffix = "".join(_id_random.choice(ID_ALPHABET) for _ in range(9))
    return f"idea_{millis}_{suffix}"


def validate_request(request: GenerationRequest | Mapping[str, Any]) -> GenerationRequest:
    """Coerce and check a generation request.

    Returns a copy with trimmed industry/project type and blank interests dropped.

    Raises:
        ValidationError: On missing fields, blank identifiers, or too many interests.
    """
    if not isinstance(request, GenerationRequest):
        try:
            request = GenerationRequest.model_validate(request)
        except SchemaValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(f"Invalid request field '{location}': {first.get('msg')}") from exc

    industry = request.industry.strip()
    project_type = request.project_type.strip()
    if not industry:
        raise ValidationError("Industry is required")
    if not project_type:
        raise ValidationError("Project type is required")
    if len(request.user_interests) > MAX_USER_INTERESTS:
        raise ValidationError(f"At most {MAX_USER_INTERESTS} user interests are allowed")

    interests = [item.strip() for item in request.user_interests if item.strip()]
    return request.model_copy(
        update={"industry": industry, "project_type": project_type, "user_interests": interests}
    )


class IdeaAssembler:
    """Produces one ``Idea`` per call. Ideas are returned, never stored."""

    def __init__(
        self,
        composer: PromptComposer,
        client: CompletionClient,
        clock: Callable[[], datetime] | None = None,
    ):
        self.composer = composer
        self.client = client
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def generate(self, request: GenerationRequest | Mapping[str, Any]) -> Idea:
        request = validate_request(request)
        logger.info(
            "Generating idea industry=%s project_type=%s complexity=%s interests=%d",
            request.industry,
            request.project_type,
            request.complexity,
            len(request.user_interests),
        )

        try:
            prompt, directives = self.composer.compose(
                request.industry,
                request.project_type,
                request.user_interests,
                request.complexity,
            )
            logger.debug("Creative directives:\n%s", directives)

            raw = self.client.complete(prompt)
            logger.debug("Raw completion: %s", raw)

            fields = parse_idea_fields(raw)
        except GenerationError as exc:
            logger.error("Idea generation failed (%s): %s", exc.kind, exc)
            raise
        except Exception as exc:
            logger.exception("Unexpected idea generation failure")
            raise GenerationError(str(exc)) from exc

        now = self.clock()
        idea = Idea(
            **fields.model_dump(),
            id=generate_idea_id(now),
            industry=request.industry,
            project_type=request.project_type,
            complexity=request.complexity,
            generated_at=now,
        )
        logger.info("Generated idea id=%s title=%r", idea.id, idea.title)
        return idea
