from __future__ import annotations

import pytest

from academy_tracker.analysis import calculate_exercise_stats, percentage_tree
from academy_tracker.models import LoggedExercise, TrainingPlan
from academy_tracker.planning import (
    build_analysis_tree,
    detect_flexible_distribution,
    find_unplanned,
    validate_plan,
)


def _plan(planificacion: dict) -> TrainingPlan:
    return TrainingPlan.from_dict({"jugadorId": "ana", "planificacion": planificacion})


def _exercise(tipo: str, area: str, name: str, minutes: str) -> LoggedExercise:
    return LoggedExercise(id=name, tipo=tipo, area=area, ejercicio=name, tiempo_cantidad=minutes)


FULL_PLAN = {
    "Canasto": {
        "porcentajeTotal": 60,
        "areas": {
            "Juego de red": {
                "porcentajeDelTotal": 30,
                "ejercicios": {"Voleas": {"porcentajeDelTotal": 20}, "Smash": {"porcentajeDelTotal": 10}},
            },
            "Juego de base": {"porcentajeDelTotal": 30},
        },
    },
    "Peloteo": {
        "porcentajeTotal": 40,
        "areas": {"Puntos": {"porcentajeDelTotal": 40, "ejercicios": {"Puntos libres": 40}}},
    },
}


def _actual():
    stats = calculate_exercise_stats(
        [
            _exercise("Canasto", "Juego de red", "Voleas", "15m"),
            _exercise("Canasto", "Juego de red", "Smash", "5m"),
            _exercise("Canasto", "Juego de base", "Estático", "20m"),
            _exercise("Pelota viva", "Puntos", "Libres", "10m"),
        ]
    )
    return percentage_tree(stats)


def test_planned_type_without_data_shows_full_gap() -> None:
    tree = build_analysis_tree(_plan({"Canasto": {"porcentajeTotal": 50}}), {})

    assert len(tree) == 1
    node = tree[0]
    assert (node.planificado, node.realizado, node.diferencia) == (50, 0, 50)
    assert node.children == []


def test_missing_plan_gives_empty_tree() -> None:
    assert build_analysis_tree(None, _actual()) == []
    assert find_unplanned(None, _actual()) == []


def test_type_realised_equals_sum_of_its_areas() -> None:
    tree = build_analysis_tree(_plan(FULL_PLAN), _actual())
    canasto = tree[0]

    assert canasto.name == "Canasto"
    assert canasto.realizado == pytest.approx(80.0)
    assert canasto.realizado == pytest.approx(sum(area.realizado for area in canasto.children))

    red, base = canasto.children
    assert red.name == "Juego de red"
    assert red.es_distribucion_libre is False
    assert [(leaf.name, leaf.realizado) for leaf in red.children] == [
        ("Voleas", pytest.approx(30.0)),
        ("Smash", pytest.approx(10.0)),
    ]
    assert red.children[0].diferencia == pytest.approx(-10.0)
    assert red.children[0].children is None

    assert base.es_distribucion_libre is True
    assert base.realizado == pytest.approx(40.0)
    assert base.children == []


def test_every_plan_node_appears_once_even_without_data() -> None:
    tree = build_analysis_tree(_plan(FULL_PLAN), _actual())
    peloteo = tree[1]

    assert [node.name for node in tree] == ["Canasto", "Peloteo"]
    assert peloteo.realizado == 0
    assert peloteo.children[0].children[0].name == "Puntos libres"
    assert peloteo.children[0].children[0].diferencia == pytest.approx(40.0)


def test_unplanned_categories_are_dropped_by_default() -> None:
    actual = _actual()
    tree = build_analysis_tree(_plan(FULL_PLAN), actual)

    assert "Pelota Viva" not in [node.name for node in tree]
    assert find_unplanned(_plan(FULL_PLAN), actual) == ["Pelota Viva"]


def test_include_unplanned_appends_zero_planned_nodes() -> None:
    tree = build_analysis_tree(_plan(FULL_PLAN), _actual(), include_unplanned=True)

    extra = tree[-1]
    assert extra.name == "Pelota Viva"
    assert extra.planificado == 0
    assert extra.realizado == pytest.approx(20.0)
    assert extra.diferencia == pytest.approx(-20.0)
    assert extra.children[0].name == "Puntos"


def test_unplanned_drill_in_planned_area_is_reported() -> None:
    actual = {"Canasto": {"Juego De Red": {"Voleas": 50.0, "Subidas": 50.0}}}
    plan = _plan(FULL_PLAN)

    assert find_unplanned(plan, actual) == ["Canasto > Juego De Red > Subidas"]
    red = build_analysis_tree(plan, actual, include_unplanned=True)[0].children[0]
    assert [leaf.name for leaf in red.children] == ["Voleas", "Smash", "Subidas"]
    assert red.children[-1].planificado == 0


def test_node_to_dict_uses_document_keys() -> None:
    tree = build_analysis_tree(_plan(FULL_PLAN), _actual())
    payload = tree[0].to_dict()

    assert payload["children"][1]["esDistribucionLibre"] is True
    assert "children" not in payload["children"][0]["children"][0]


def test_validate_plan_accepts_fully_broken_down_plan() -> None:
    plan = _plan(
        {
            "Canasto": {"porcentajeTotal": 50, "areas": {"Red": {"porcentajeDelTotal": 50, "ejercicios": {"Volea": 50}}}},
            "Peloteo": {"porcentajeTotal": 50, "areas": {"Puntos": {"porcentajeDelTotal": 50, "ejercicios": {"Libres": 50}}}},
        }
    )

    result = validate_plan(plan)

    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []
    assert detect_flexible_distribution(plan) is False


def test_validate_plan_rejects_totals_other_than_100() -> None:
    result = validate_plan(_plan({"Canasto": {"porcentajeTotal": 50}}))

    assert not result.is_valid
    assert "add up to 100%" in result.errors[0]


def test_validate_plan_tolerates_rounding() -> None:
    plan = _plan({"Canasto": {"porcentajeTotal": 33.333}, "Peloteo": {"porcentajeTotal": 66.665}})

    assert validate_plan(plan).is_valid


def test_validate_plan_flags_areas_exceeding_type() -> None:
    plan = _plan(
        {"Canasto": {"porcentajeTotal": 100, "areas": {"Red": {"porcentajeDelTotal": 70}, "Base": {"porcentajeDelTotal": 40}}}}
    )

    result = validate_plan(plan)

    assert not result.is_valid
    assert any("exceed the type total" in error for error in result.errors)


def test_validate_plan_warns_about_unassigned_time() -> None:
    result = validate_plan(_plan(FULL_PLAN))

    assert result.is_valid
    assert any("Juego de base" in warning and "not broken down by exercise" in warning for warning in result.warnings)
    assert detect_flexible_distribution(_plan(FULL_PLAN)) is True
