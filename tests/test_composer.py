from __future__ import annotations

import random
import threading

from innovative_sphere.composer import (
    ANGLES,
    ARCHETYPES,
    DATA_MODALITIES,
    CatalogItem,
    PromptComposer,
    RecencyHistory,
    build_system_prompt,
    is_monitoring_archetype,
    pick_distinct,
    pick_fresh,
)


def test_pick_fresh_given_recent_ids_when_picked_then_recent_items_are_avoided() -> None:
    # Given
    catalog = [CatalogItem("a", "A"), CatalogItem("b", "B"), CatalogItem("c", "C")]
    rng = random.Random(3)

    # When
    picks = {pick_fresh(catalog, ["a", "b"], rng).id for _ in range(20)}

    # Then
    assert picks == {"c"}


def test_pick_fresh_given_saturated_history_when_picked_then_full_catalog_is_used() -> None:
    # Given
    catalog = [CatalogItem("a", "A"), CatalogItem("b", "B")]

    # When
    pick = pick_fresh(catalog, ["a", "b"], random.Random(0))

    # Then
    assert pick in catalog


def test_pick_distinct_given_same_seed_when_picked_then_result_is_reproducible_and_unique() -> None:
    # Given
    seed = 42

    # When
    first = pick_distinct(ANGLES, 2, random.Random(seed))
    second = pick_distinct(ANGLES, 2, random.Random(seed))

    # Then
    assert first == second
    assert len(set(first)) == 2


def test_is_monitoring_archetype_given_catalog_labels_when_checked_then_only_detection_matches() -> None:
    # Given
    by_id = {item.id: item for item in ARCHETYPES}

    # When
    detection = is_monitoring_archetype(by_id["anomaly-detection"])
    recommendation = is_monitoring_archetype(by_id["recommendation-system"])

    # Then
    assert detection is True
    assert recommendation is False


def test_compose_given_four_calls_when_composed_then_history_is_bounded_and_fourth_archetype_is_new(
    composer: PromptComposer,
) -> None:
    # Given
    args = ("healthcare", "web-application", ["machine learning"], "intermediate")

    # When
    for _ in range(3):
        composer.compose(*args)
    first_three = composer.history.archetypes
    composer.compose(*args)
    after_four = composer.history.archetypes

    # Then
    assert len(first_three) == 3
    assert len(after_four) == 3
    assert after_four[-1] not in first_three
    assert after_four[:2] == first_three[1:]


def test_compose_given_consecutive_calls_when_composed_then_modalities_do_not_repeat_within_window(
    composer: PromptComposer,
) -> None:
    # Given
    chosen: list[str] = []

    # When
    for _ in range(4):
        composer.compose("finance", "mobile-application", [], "beginner")
        chosen.append(composer.history.modalities[-1])

    # Then
    assert len(set(chosen)) == 4
    assert len(DATA_MODALITIES) >= 4


def test_compose_given_prior_history_when_composed_then_directives_name_previous_choices(
    composer: PromptComposer,
) -> None:
    # Given
    composer.compose("education", "data-science", ["nlp"], "advanced")
    previous_archetype = composer.history.archetypes[-1]
    previous_modality = composer.history.modalities[-1]

    # When
    _, directives = composer.compose("education", "data-science", ["nlp"], "advanced")

    # Then
    lines = directives.splitlines()
    assert lines[0].startswith("1. HARD CONSTRAINT: do not reuse these recently used archetypes:")
    assert previous_archetype in lines[0]
    assert lines[1].startswith("2. HARD CONSTRAINT: do not reuse these recently used data modalities:")
    assert previous_modality in lines[1]


def test_compose_given_empty_history_when_composed_then_exclusions_say_none_and_lines_are_numbered(
    composer: PromptComposer,
) -> None:
    # Given
    # A fresh composer.

    # When
    _, directives = composer.compose("energy", "iot-project", [], "intermediate")

    # Then
    lines = directives.splitlines()
    assert "archetypes: none." in lines[0]
    assert "data modalities: none." in lines[1]
    assert [line.split(".", 1)[0] for line in lines] == [str(i) for i in range(1, len(lines) + 1)]
    assert sum(line.split(". ", 1)[1].startswith("Angle:") for line in lines) == 2
    assert any("Context:" in line for line in lines)
    assert any("Technique spice:" in line for line in lines)


def test_compose_given_non_monitoring_archetype_when_composed_then_anti_monitoring_constraint_is_added() -> None:
    # Given
    history = RecencyHistory()
    composer = PromptComposer(history=history, rng=random.Random(5))
    detecting = [item.id for item in ARCHETYPES if is_monitoring_archetype(item)]

    # When
    results = []
    for _ in range(12):
        _, directives = composer.compose("finance", "web-application", [], "intermediate")
        results.append((history.archetypes[-1], directives))

    # Then
    for archetype_id, directives in results:
        has_constraint = "do NOT propose a monitoring" in directives
        assert has_constraint == (archetype_id not in detecting)


def test_compose_given_inputs_when_composed_then_prompt_contains_request_fields_and_contract(
    composer: PromptComposer,
) -> None:
    # Given
    interests = ["machine learning", "accessibility"]

    # When
    prompt, directives = composer.compose("healthcare", "web-application", interests, "intermediate")

    # Then
    assert "Industry: healthcare" in prompt
    assert "Project Type: web-application" in prompt
    assert "User Interests: machine learning, accessibility" in prompt
    assert "Complexity Level: intermediate" in prompt
    assert "Randomization seed: " in prompt
    assert '"estimatedDuration"' in prompt
    assert "fundamentally new idea" in prompt
    assert directives in prompt


def test_compose_given_no_interests_when_composed_then_placeholder_is_used(composer: PromptComposer) -> None:
    # Given
    interests: list[str] = []

    # When
    prompt, _ = composer.compose("sports", "chatbot", interests, "beginner")

    # Then
    assert "User Interests: N/A" in prompt


def test_compose_given_concurrent_callers_when_composed_then_history_stays_bounded() -> None:
    # Given
    composer = PromptComposer(rng=random.Random(11))

    def worker() -> None:
        for _ in range(25):
            composer.compose("travel", "web-application", ["maps"], "advanced")

    threads = [threading.Thread(target=worker) for _ in range(8)]

    # When
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Then
    assert len(composer.history.archetypes) == 3
    assert len(composer.history.modalities) == 3


def test_build_system_prompt_given_no_args_when_called_then_json_requirement_is_stated() -> None:
    # Given
    # No input is required.

    # When
    prompt = build_system_prompt()

    # Then
    assert "valid JSON" in prompt
