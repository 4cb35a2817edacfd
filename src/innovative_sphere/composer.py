"""Prompt composition with recency-biased creative directives.

The composer steers the model away from repeating itself across consecutive
calls: every prompt gets a freshly chosen problem archetype and data modality
(avoiding the ones used recently), a few random angle hints, and hard
constraints naming what must not be reused.
"""

from __future__ import annotations

import json
import random
import re
import threading
from collections import deque
from collections.abc import Sequence
from typing import NamedTuple


class CatalogItem(NamedTuple):
    id: str
    label: str


ARCHETYPES: tuple[CatalogItem, ...] = (
    CatalogItem("predictive-analytics", "Predictive analytics that forecasts an outcome from historical signals"),
    CatalogItem("anomaly-detection", "Anomaly detection that flags rare or suspicious events"),
    CatalogItem("recommendation-system", "Recommendation system that personalizes choices for each user"),
    CatalogItem("optimization-scheduling", "Optimization engine that schedules or allocates scarce resources"),
    CatalogItem("matching-marketplace", "Two-sided marketplace that matches supply with demand"),
    CatalogItem("generative-assistant", "Generative assistant that drafts, explains, or summarizes content"),
    CatalogItem("simulation-digital-twin", "Simulation or digital twin for what-if exploration"),
    CatalogItem("knowledge-search", "Knowledge graph with semantic search and question answering"),
    CatalogItem("workflow-automation", "Workflow automation that removes repetitive manual steps"),
    CatalogItem("gamified-learning", "Gamified experience that drives learning or behavior change"),
)

DATA_MODALITIES: tuple[CatalogItem, ...] = (
    CatalogItem("time-series", "Time-series measurements"),
    CatalogItem("imagery", "Images or video frames"),
    CatalogItem("text", "Free text and documents"),
    CatalogItem("geospatial", "Geospatial coordinates and maps"),
    CatalogItem("audio", "Audio and speech"),
    CatalogItem("tabular", "Tabular and transactional records"),
)

ANGLES: tuple[str, ...] = (
    "privacy-by-design: keep personal data minimal and local",
    "offline-first: the core flow must work without connectivity",
    "accessibility-first: usable with screen readers and low vision",
    "low-cost hardware: runs on commodity or second-hand devices",
    "explainability: every automated decision shows its reasoning",
    "sustainability: measurably reduces waste or energy use",
    "multilingual: serves users in at least two languages",
    "real-time collaboration between several users",
    "edge deployment: inference happens on the device",
    "open data: built on publicly available datasets",
)

CONTEXTS: tuple[str, ...] = (
    "rural or underserved communities",
    "small and medium businesses with no data team",
    "students and first-time users",
    "field workers with intermittent connectivity",
    "aging populations and caregivers",
    "volunteer-run non-profit organizations",
)

TECHNIQUE_SPICES: tuple[str, ...] = (
    "federated learning",
    "active learning with a human in the loop",
    "graph neural networks",
    "reinforcement learning",
    "retrieval-augmented generation",
    "a rules engine combined with a lightweight ML model",
)

MONITORING_RE = re.compile(r"monitor|track|detect|surveil", re.IGNORECASE)

HISTORY_LIMIT = 3

OUTPUT_CONTRACT = {
    "title": "Project title (max 100 characters)",
    "description": "Detailed project description (200-500 words)",
    "technologies": ["array", "of", "suggested", "technologies"],
    "features": ["array", "of", "key", "features"],
    "objectives": ["array", "of", "learning", "objectives"],
    "challenges": ["array", "of", "potential", "challenges"],
    "estimatedDuration": "Duration estimate (e.g., '3-6 months')",
}

SEED_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def build_system_prompt() -> str:
    return (
        "You are an expert project advisor who generates innovative, feasible capstone project ideas. "
        "Always respond with valid JSON format containing project details."
    )


class RecencyHistory:
    """Bounded, lock-guarded record of recently chosen archetypes and modalities."""

    def __init__(self, limit: int = HISTORY_LIMIT):
        self.limit = limit
        self.lock = threading.Lock()
        self._archetypes: deque[str] = deque(maxlen=limit)
        self._modalities: deque[str] = deque(maxlen=limit)

    @property
    def archetypes(self) -> list[str]:
        with self.lock:
            return list(self._archetypes)

    @property
    def modalities(self) -> list[str]:
        with self.lock:
            return list(self._modalities)

    def select(
        self,
        rng: random.Random,
        archetypes: Sequence[CatalogItem] = ARCHETYPES,
        modalities: Sequence[CatalogItem] = DATA_MODALITIES,
    ) -> tuple[CatalogItem, CatalogItem, list[str], list[str]]:
        """Pick a fresh archetype and modality and record them atomically.

        Returns the chosen items plus the recent ids as they were before this call.
        """
        with self.lock:
            recent_archetypes = list(self._archetypes)
            recent_modalities = list(self._modalities)

            archetype = pick_fresh(archetypes, recent_archetypes, rng)
            modality = pick_fresh(modalities, recent_modalities, rng)

            self._archetypes.append(archetype.id)
            self._modalities.append(modality.id)

        return archetype, modality, recent_archetypes, recent_modalities


def pick_fresh(
    catalog: Sequence[CatalogItem],
    recent: Sequence[str],
    rng: random.Random,
) -> CatalogItem:
    """Pick uniformly among items not in ``recent``, or from the whole catalog if none remain."""
    fresh = [item for item in catalog if item.id not in recent]
    return rng.choice(fresh or list(catalog))


def pick_distinct(options: Sequence[str], count: int, rng: random.Random) -> list[str]:
    return rng.sample(list(options), k=min(count, len(options)))


def is_monitoring_archetype(archetype: CatalogItem) -> bool:
    return bool(MONITORING_RE.search(archetype.label))


def _seed_token(rng: random.Random, length: int = 8) -> str:
    return "".join(rng.choice(SEED_ALPHABET) for _ in range(length))


def _format_recent(items: Sequence[str]) -> str:
    return ", ".join(items) if items else "none"


class PromptComposer:
    """Builds generation prompts and owns the recency history used to vary them."""

    def __init__(self, history: RecencyHistory | None = None, rng: random.Random | None = None):
        self.history = history or RecencyHistory()
        self.rng = rng or random.Random()

    def build_directives(self) -> str:
        """Choose this call's creative directives and return them as numbered lines."""
        archetype, modality, recent_archetypes, recent_modalities = self.history.select(self.rng)

        angles = pick_distinct(ANGLES, 2, self.rng)
        context = self.rng.choice(CONTEXTS)
        spice = self.rng.choice(TECHNIQUE_SPICES)

        lines = [
            f"Problem archetype: {archetype.label}.",
            f"Primary data modality: {modality.label}.",
            *(f"Angle: {angle}." for angle in angles),
            f"Context: design it for {context}.",
            f"Technique spice: incorporate {spice}.",
        ]

        if not is_monitoring_archetype(archetype):
            lines.insert(
                0,
                "HARD CONSTRAINT: do NOT propose a monitoring, tracking, or dashboard-only system.",
            )

        lines[0:0] = [
            f"HARD CONSTRAINT: do not reuse these recently used archetypes: {_format_recent(recent_archetypes)}.",
            f"HARD CONSTRAINT: do not reuse these recently used data modalities: {_format_recent(recent_modalities)}.",
        ]

        return "\n".join(f"{idx}. {line}" for idx, line in enumerate(lines, start=1))

    def compose(
        self,
        industry: str,
        project_type: str,
        interests: Sequence[str],
        complexity: str,
    ) -> tuple[str, str]:
        """Return ``(prompt_text, directives_text)`` for one generation call."""
        directives = self.build_directives()
        interests_text = ", ".join(interests) if interests else "N/A"
        seed = _seed_token(self.rng)

        prompt = (
            "Generate a detailed capstone project idea with the following specifications:\n\n"
            f"Industry: {industry}\n"
            f"Project Type: {project_type}\n"
            f"User Interests: {interests_text}\n"
            f"Complexity Level: {complexity}\n"
            f"Randomization seed: {seed}\n\n"
            "Creative directives (follow all of them):\n"
            f"{directives}\n\n"
            "Respond with a JSON object containing exactly these fields:\n"
            f"{json.dumps(OUTPUT_CONTRACT, indent=2)}\n\n"
            "Make the idea innovative, practical, and aligned with the specified industry and project type. "
            "Ensure it is appropriate for the complexity level and incorporates the user's interests.\n"
            "Propose a fundamentally new idea, not a rephrasing of a common or previous one. "
            "Return valid JSON only, without markdown fences or commentary."
        )
        return prompt, directives
