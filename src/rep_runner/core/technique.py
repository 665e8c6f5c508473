"""
Technique advice for an exercise.

A pure lookup: the exercise name and muscle group are matched against an
ordered table of movement categories (first match wins) and the category's
static description and coaching cues are returned.  Keywords cover English
and French exercise names.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class TechniqueAdvice:
    """Static coaching material for one movement category."""

    category: str
    description: str
    cues: tuple[str, ...]


@dataclass(frozen=True)
class _Category:
    advice: TechniqueAdvice
    keywords: tuple[str, ...]


PULL: Final = TechniqueAdvice(
    category="pull",
    description=(
        "Pulling movement for the back and biceps. Start every rep from a "
        "controlled hang with active shoulders."
    ),
    cues=(
        "Chest to the bar",
        "Shoulders down and back",
        "Drive the elbows, don't just pull with the arms",
        "Control the way down",
    ),
)

PUSH: Final = TechniqueAdvice(
    category="push",
    description=(
        "Pushing movement for the chest, shoulders and triceps. Keep the body "
        "rigid from head to heels."
    ),
    cues=(
        "Body locked in a plank",
        "Elbows neither flared nor glued to the ribs",
        "Full range: chest low, arms locked out",
        "Lower slowly, press explosively",
    ),
)

LEGS: Final = TechniqueAdvice(
    category="legs",
    description="Lower-body movement for the quads, glutes and hamstrings.",
    cues=(
        "Knees track over the toes",
        "Keep the chest up",
        "Control the descent",
        "Land softly on jumps",
    ),
)

CORE: Final = TechniqueAdvice(
    category="core",
    description="Trunk stability work. Quality of control beats rep count.",
    cues=(
        "No swinging",
        "Ribs down, lower back neutral",
        "Breathe out on the effort",
    ),
)

GENERAL: Final = TechniqueAdvice(
    category="general",
    description="General street-workout exercise.",
    cues=(
        "Warm up the joints involved",
        "Prioritise clean reps over volume",
        "Stop the set when form breaks down",
    ),
)

# Order matters: first matching category wins.  Single-word keywords match
# the start of a word ("pull" matches "pull-ups"), phrases match whole words.
_CATEGORIES: Final[tuple[_Category, ...]] = (
    _Category(PULL, (
        "pull", "chin", "row", "back", "lats", "bicep", "curl", "lever", "muscle up",
        "traction", "tirage", "dos",
    )),
    _Category(PUSH, (
        "push", "dip", "press", "chest", "pec", "tricep", "skullcrusher", "handstand",
        "shoulder", "pompe", "epaule",
    )),
    _Category(LEGS, (
        "squat", "lunge", "legs", "glute", "calf", "calves", "jump", "pistol", "step up",
        "jambe", "fente", "mollet", "fessier",
    )),
    _Category(CORE, (
        "core", "abs", "plank", "crunch", "raise", "hollow", "l sit", "sit up",
        "gainage", "abdo", "releve", "planche",
    )),
)

_WORD = re.compile(r"[a-z0-9]+")


def _normalize(text: str) -> list[str]:
    """Lower-case, strip accents and split into words ("Relevés" → ["releves"])."""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _WORD.findall(stripped)


def _matches(keyword: str, words: list[str]) -> bool:
    if " " in keyword:
        return f" {keyword} " in f" {' '.join(words)} "
    return any(word.startswith(keyword) for word in words)


def classify(name: str, muscle_group: str | None = None) -> str:
    """Return the category name for an exercise."""
    return advise_for(name, muscle_group).category


def advise_for(name: str, muscle_group: str | None = None) -> TechniqueAdvice:
    """
    Technique advice for an exercise.

    Args:
        name: Exercise display name
        muscle_group: Optional muscle-group label

    Returns:
        The advice of the first matching category, GENERAL if none match.
        An explicit muscle group is matched before the name.
    """
    for text in (muscle_group, name):
        if not text:
            continue
        words = _normalize(text)
        for category in _CATEGORIES:
            if any(_matches(keyword, words) for keyword in category.keywords):
                return category.advice
    return GENERAL
