from __future__ import annotations

import itertools
from datetime import date
from enum import Enum

import pytest

from academy_tracker.analysis import (
    calculate_exercise_stats,
    canonical_key,
    collect_exercises,
    exercise_label,
    parse_duration_minutes,
    percentage_tree,
    session_exercises_to_logged,
)
from academy_tracker.models import LoggedExercise, TrainingSession


def _exercise(tipo: str, area: str, name: str, minutes: str, **extra) -> LoggedExercise:
    return LoggedExercise(id=f"{tipo}-{area}-{name}-{minutes}", tipo=tipo, area=area, ejercicio=name, tiempo_cantidad=minutes, **extra)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("30 reps", 30.0),
        ("15m", 15.0),
        ("20", 20.0),
        ("1.5 h", 1.5),
        (12, 12.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("1.2.3", 1.2),
    ],
)
def test_parse_duration_minutes_reads_leading_quantity(raw, expected) -> None:
    assert parse_duration_minutes(raw) == pytest.approx(expected)


def test_canonical_key_title_cases_each_token() -> None:
    class Tipo(Enum):
        CANASTO = "canasto"

    assert canonical_key("juego de base") == "Juego De Base"
    assert canonical_key("  PELOTEO  ") == "Peloteo"
    assert canonical_key(Tipo.CANASTO) == "Canasto"
    assert canonical_key(None) == ""


def test_exercise_label_falls_back_to_specific_then_placeholder() -> None:
    assert exercise_label(_exercise("Canasto", "Red", "Volea", "5")) == "Volea"
    assert exercise_label(_exercise("Canasto", "Red", "", "5", ejercicio_especifico="Volea alta")) == "Volea alta"
    assert exercise_label(_exercise("Canasto", "Red", "", "5")) == "Sin nombre"


def test_two_volleys_add_up_to_the_whole_session() -> None:
    stats = calculate_exercise_stats(
        [_exercise("Canasto", "Red", "Volea", "15m"), _exercise("Canasto", "Red", "Volea", "5m")]
    )

    assert stats.total_minutes == pytest.approx(20.0)
    canasto = stats.type_stats["Canasto"]
    assert canasto.total == pytest.approx(20.0)
    assert canasto.percentage == pytest.approx(100.0)
    assert canasto.areas["Red"].exercises["Volea"] == pytest.approx(20.0)
    assert stats.area_stats["Red"].percentage == pytest.approx(100.0)


def test_keys_are_canonicalised_when_aggregating() -> None:
    stats = calculate_exercise_stats(
        [_exercise("canasto", "juego de red", "Volea", "10"), _exercise("CANASTO", "Juego de red", "Volea", "10")]
    )

    assert list(stats.type_stats) == ["Canasto"]
    assert list(stats.type_stats["Canasto"].areas) == ["Juego De Red"]


def test_zero_minute_exercises_are_excluded() -> None:
    stats = calculate_exercise_stats(
        [
            _exercise("Canasto", "Red", "Volea", "10"),
            _exercise("Peloteo", "Puntos", "Libres", "0"),
            _exercise("Peloteo", "Puntos", "Libres", "n/a"),
        ]
    )

    assert stats.total_minutes == pytest.approx(10.0)
    assert "Peloteo" not in stats.type_stats


def test_no_minutes_gives_empty_stats_without_division_errors() -> None:
    stats = calculate_exercise_stats([_exercise("Canasto", "Red", "Volea", "")])

    assert stats.total_minutes == 0
    assert stats.type_stats == {}
    assert percentage_tree(stats) == {}


def test_area_totals_are_aggregated_across_types() -> None:
    stats = calculate_exercise_stats(
        [_exercise("Canasto", "Red", "Volea", "10"), _exercise("Peloteo", "Red", "Volea", "30")]
    )

    assert stats.area_stats["Red"].total == pytest.approx(40.0)
    assert stats.type_stats["Peloteo"].percentage == pytest.approx(75.0)
    assert stats.type_stats["Peloteo"].areas["Red"].percentage == pytest.approx(75.0)


def test_aggregation_is_order_independent_and_idempotent() -> None:
    exercises = [
        _exercise("Canasto", "Red", "Volea", "0.1"),
        _exercise("Canasto", "Red", "Smash", "0.2"),
        _exercise("Peloteo", "Base", "Control", "0.3"),
        _exercise("Canasto", "Red", "Volea", "0.7"),
    ]
    baseline = calculate_exercise_stats(exercises)

    for permutation in itertools.permutations(exercises):
        assert calculate_exercise_stats(permutation) == baseline
    assert calculate_exercise_stats(exercises) == baseline


def test_percentage_tree_expresses_drills_as_share_of_total() -> None:
    stats = calculate_exercise_stats(
        [_exercise("Canasto", "Red", "Volea", "30"), _exercise("Peloteo", "Puntos", "Libres", "10")]
    )

    tree = percentage_tree(stats)

    assert tree["Canasto"]["Red"]["Volea"] == pytest.approx(75.0)
    assert tree["Peloteo"]["Puntos"]["Libres"] == pytest.approx(25.0)


def test_collect_exercises_appends_current_session() -> None:
    stored = TrainingSession(
        id="s1",
        jugador_id="ana",
        fecha=date(2024, 5, 1),
        ejercicios=[_exercise("Canasto", "Red", "Volea", "10")],
    )
    current = [_exercise("Peloteo", "Puntos", "Libres", "5")]

    collected = collect_exercises([stored], current)

    assert [exercise.ejercicio for exercise in collected] == ["Volea", "Libres"]


def test_session_exercises_to_logged_keeps_only_the_player() -> None:
    entries = [
        {"tipo": "Canasto", "area": "Red", "ejercicio": "Volea", "tiempoCantidad": "10", "loggedForPlayerId": "ana"},
        {"tipo": "Canasto", "area": "Red", "ejercicioEspecifico": "Smash", "tiempoCantidad": "5", "loggedForPlayerId": "ana"},
        {"tipo": "Peloteo", "area": "Puntos", "ejercicio": "Libres", "tiempoCantidad": "20", "loggedForPlayerId": "leo"},
    ]

    logged = session_exercises_to_logged(entries, "ana")

    assert [exercise.ejercicio for exercise in logged] == ["Volea", "Smash"]
    assert all(exercise.tipo == "Canasto" for exercise in logged)
