from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from .constants import DEFAULT_EXERCISE_LABEL
from .models import LoggedExercise, TrainingSession

_NON_NUMERIC = re.compile(r"[^\d.]")
_LEADING_FLOAT = re.compile(r"\d+(?:\.\d*)?|\.\d+")

PercentageTree = Dict[str, Dict[str, Dict[str, float]]]


@dataclass(frozen=True)
class AreaStats:
    total: float
    percentage: float
    exercises: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TypeStats:
    total: float
    percentage: float
    areas: Dict[str, AreaStats] = field(default_factory=dict)


@dataclass(frozen=True)
class AreaTotals:
    total: float
    percentage: float


@dataclass(frozen=True)
class ExerciseStats:
    """Minutes trained per tipo/area/drill and their share of the total."""

    total_minutes: float
    type_stats: Dict[str, TypeStats]
    area_stats: Dict[str, AreaTotals]


def parse_duration_minutes(value: Any) -> float:
    """
    Extract the leading quantity from a loosely formatted duration.

    Everything but digits and dots is stripped before parsing, so ``"20m"``
    gives 20.0 and ``"30 reps"`` gives 30.0. Missing or unparsable input is 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    cleaned = _NON_NUMERIC.sub("", str(value))
    match = _LEADING_FLOAT.match(cleaned)
    if not match:
        return 0.0
    minutes = float(match.group(0))
    return minutes if math.isfinite(minutes) else 0.0


def canonical_key(value: Any) -> str:
    """Title-case each whitespace-separated token: ``"juego de base"`` -> ``"Juego De Base"``."""
    if isinstance(value, Enum):
        value = value.value
    text = "" if value is None else str(value)
    return " ".join(token[:1].upper() + token[1:].lower() for token in text.split())


def exercise_label(exercise: LoggedExercise) -> str:
    return exercise.ejercicio or exercise.ejercicio_especifico or DEFAULT_EXERCISE_LABEL


def _percentage(part: float, total: float) -> float:
    return part / total * 100 if total > 0 else 0.0


def calculate_exercise_stats(exercises: Iterable[LoggedExercise]) -> ExerciseStats:
    """
    Fold logged exercises into a tipo -> area -> drill tree of minutes.

    Exercises without a parseable duration are skipped entirely. Bucket sums
    use ``math.fsum`` so the result does not depend on the input order.
    """
    buckets: Dict[str, Dict[str, Dict[str, List[float]]]] = {}
    all_minutes: List[float] = []

    for exercise in exercises:
        minutes = parse_duration_minutes(exercise.tiempo_cantidad)
        if minutes == 0:
            continue
        all_minutes.append(minutes)
        tipo_bucket = buckets.setdefault(canonical_key(exercise.tipo), {})
        area_bucket = tipo_bucket.setdefault(canonical_key(exercise.area), {})
        area_bucket.setdefault(exercise_label(exercise), []).append(minutes)

    total_minutes = math.fsum(all_minutes)
    type_stats: Dict[str, TypeStats] = {}
    area_minutes: Dict[str, List[float]] = {}

    for tipo, areas in buckets.items():
        area_entries: Dict[str, AreaStats] = {}
        tipo_minutes: List[float] = []
        for area, drills in areas.items():
            exercise_totals = {name: math.fsum(values) for name, values in drills.items()}
            flat = [value for values in drills.values() for value in values]
            area_total = math.fsum(flat)
            tipo_minutes.extend(flat)
            area_minutes.setdefault(area, []).extend(flat)
            area_entries[area] = AreaStats(
                total=area_total,
                percentage=_percentage(area_total, total_minutes),
                exercises=exercise_totals,
            )
        tipo_total = math.fsum(tipo_minutes)
        type_stats[tipo] = TypeStats(
            total=tipo_total,
            percentage=_percentage(tipo_total, total_minutes),
            areas=area_entries,
        )

    area_stats = {
        area: AreaTotals(total=math.fsum(values), percentage=_percentage(math.fsum(values), total_minutes))
        for area, values in area_minutes.items()
    }
    return ExerciseStats(total_minutes=total_minutes, type_stats=type_stats, area_stats=area_stats)


def percentage_tree(stats: ExerciseStats) -> PercentageTree:
    """Express every drill's minutes as a percentage of all minutes trained."""
    return {
        tipo: {
            area: {
                name: _percentage(minutes, stats.total_minutes)
                for name, minutes in area_stats.exercises.items()
            }
            for area, area_stats in tipo_stats.areas.items()
        }
        for tipo, tipo_stats in stats.type_stats.items()
    }


def collect_exercises(
    sessions: Iterable[TrainingSession],
    current_exercises: Iterable[LoggedExercise] = (),
) -> List[LoggedExercise]:
    """Merge the exercises of stored sessions with an in-progress session."""
    collected: List[LoggedExercise] = []
    for session in sessions:
        collected.extend(session.ejercicios)
    collected.extend(current_exercises)
    return collected


def session_exercises_to_logged(
    exercises: Iterable[Mapping[str, Any]],
    player_id: str,
) -> List[LoggedExercise]:
    """
    Convert exercises of an unsaved session into logged exercises for one player.

    Entries carry a ``loggedForPlayerId`` key; those for other players are ignored.
    """
    logged: List[LoggedExercise] = []
    for entry in exercises:
        if entry.get("loggedForPlayerId") != player_id:
            continue
        payload = dict(entry)
        payload["ejercicio"] = entry.get("ejercicio") or entry.get("ejercicioEspecifico") or DEFAULT_EXERCISE_LABEL
        logged.append(LoggedExercise.from_dict(payload))
    return logged
