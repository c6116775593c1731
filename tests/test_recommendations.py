from __future__ import annotations

import pytest

from academy_tracker.config import RecommendationThresholds
from academy_tracker.models import LoggedExercise, TrainingPlan
from academy_tracker.recommendations import (
    INCREASE,
    OPTIMAL,
    REDUCE,
    PlayerInput,
    gap_action,
    gap_priority,
    plans_with_adaptation,
    recommend_for_group,
    recommend_for_player,
)


def _exercises() -> list[LoggedExercise]:
    return [
        LoggedExercise(id="e1", tipo="Canasto", area="Juego de red", ejercicio="Voleas", tiempo_cantidad="30m"),
        LoggedExercise(id="e2", tipo="Peloteo", area="Puntos", ejercicio="Puntos libres", tiempo_cantidad="10m"),
    ]


def _plan(player_id: str = "ana") -> TrainingPlan:
    return TrainingPlan.from_dict(
        {
            "jugadorId": player_id,
            "planificacion": {
                "Canasto": {"porcentajeTotal": 60, "areas": {"Juego de red": {"porcentajeDelTotal": 30}}},
                "Peloteo": {"porcentajeTotal": 40},
            },
        }
    )


@pytest.mark.parametrize(
    ("gap", "action", "priority"),
    [
        (0, OPTIMAL, "low"),
        (5, OPTIMAL, "low"),
        (-5, OPTIMAL, "low"),
        (6, INCREASE, "low"),
        (-11, REDUCE, "medium"),
        (15, INCREASE, "medium"),
        (15.5, INCREASE, "high"),
        (-40, REDUCE, "high"),
    ],
)
def test_gap_thresholds(gap, action, priority) -> None:
    thresholds = RecommendationThresholds()
    assert gap_action(gap, thresholds) == action
    assert gap_priority(gap, thresholds) == priority


def test_player_without_plan_is_compared_with_default_split() -> None:
    result = recommend_for_player(PlayerInput(player_id="ana", exercises=_exercises(), sessions_count=2))

    assert result.plan_used == "default"
    assert result.total_minutes == 40
    assert result.sessions_analyzed == 2
    by_area = {(item.level, item.area): item for item in result.items}
    canasto = by_area[("TIPO", "Canasto")]
    assert canasto.current_percentage == 75
    assert canasto.planned_percentage == 50
    assert canasto.action == REDUCE
    assert canasto.is_default
    assert by_area[("TIPO", "Peloteo")].action == INCREASE
    assert result.items[0].area == "Puntos"
    assert result.items[0].gap == pytest.approx(-75.0)


def test_area_items_compare_share_within_the_type() -> None:
    player = PlayerInput(player_id="ana", exercises=_exercises(), sessions_count=2, plan=_plan())

    result = recommend_for_player(player, thresholds=RecommendationThresholds())

    by_area = {(item.level, item.area): item for item in result.items}
    assert result.plan_used == "real"
    canasto = by_area[("TIPO", "Canasto")]
    assert canasto.planned_percentage == 60
    assert canasto.gap == pytest.approx(-15.0)
    assert canasto.priority == "medium"

    red = by_area[("AREA", "Juego De Red")]
    assert red.parent_type == "Canasto"
    assert red.planned_percentage == 50
    assert red.current_percentage == 100
    assert not red.is_default

    puntos = by_area[("AREA", "Puntos")]
    assert puntos.is_default
    assert puntos.planned_percentage == 25


def test_player_without_training_gets_increase_items() -> None:
    result = recommend_for_player(PlayerInput(player_id="leo"))

    assert result.total_minutes == 0
    assert {item.area for item in result.items} == {"Canasto", "Peloteo"}
    assert all(item.action == INCREASE for item in result.items)


def test_items_are_sorted_by_priority_then_gap() -> None:
    result = recommend_for_player(PlayerInput(player_id="ana", exercises=_exercises(), plan=_plan()))
    order = {"high": 0, "medium": 1, "low": 2}
    keys = [(order[item.priority], -abs(item.gap)) for item in result.items]

    assert keys == sorted(keys)


def test_group_recommendations_find_shared_gaps() -> None:
    players = [
        PlayerInput(player_id="ana", exercises=_exercises(), sessions_count=1),
        PlayerInput(player_id="leo", exercises=_exercises(), sessions_count=1),
        PlayerInput(player_id="sol"),
    ]

    individual, group = recommend_for_group(players)

    assert set(individual) == {"ana", "leo", "sol"}
    assert group.total_players == 3
    assert group.analyzed_players == 2
    assert group.averages["Canasto"] == 50
    assert group.strong_coincidences
    assert all(entry.player_count >= 2 for entry in group.strong_coincidences)
    assert group.recommendation.startswith("Suggestion:")


def test_plans_with_adaptation_borrows_a_teammates_plan() -> None:
    stored = {"ana": _plan("ana"), "leo": None}

    plans = plans_with_adaptation(["ana", "leo"], stored.get)

    assert plans["ana"] is stored["ana"]
    assert plans["leo"] is stored["ana"]


def test_single_player_without_plan_does_not_borrow() -> None:
    assert plans_with_adaptation(["leo"], lambda player_id: None) == {}
