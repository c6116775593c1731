"""Compare a player's training plan with what was actually trained.

The plan drives the comparison: every tipo, area and drill present in the plan
yields exactly one node, with ``realizado`` defaulting to 0 when nothing was
logged for it. Categories trained but never planned are left out unless the
caller opts in with ``include_unplanned=True``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .analysis import PercentageTree, canonical_key
from .config import get_config
from .models import AnalysisNode, PlanArea, TrainingPlan


@dataclass(frozen=True)
class PlanValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _node(name: str, planned: float, actual: float, **extra) -> AnalysisNode:
    return AnalysisNode(name=name, planificado=planned, realizado=actual, diferencia=planned - actual, **extra)


def _sum_area(area_actual: Mapping[str, float]) -> float:
    return math.fsum(area_actual.values())


def _sum_tipo(tipo_actual: Mapping[str, Mapping[str, float]]) -> float:
    return math.fsum(value for area in tipo_actual.values() for value in area.values())


def _unplanned_area_node(name: str, area_actual: Mapping[str, float]) -> AnalysisNode:
    return _node(name, 0.0, _sum_area(area_actual), es_distribucion_libre=True, children=[])


def _area_node(
    name: str,
    area_plan: PlanArea,
    area_actual: Mapping[str, float],
    include_unplanned: bool,
) -> AnalysisNode:
    node = _node(
        name,
        area_plan.porcentaje_del_total,
        _sum_area(area_actual),
        es_distribucion_libre=area_plan.ejercicios is None,
        children=[],
    )
    if area_plan.ejercicios is None:
        return node
    for exercise, planned in area_plan.ejercicios.items():
        node.children.append(_node(exercise, planned, area_actual.get(exercise, 0.0)))
    if include_unplanned:
        for exercise, actual in area_actual.items():
            if exercise not in area_plan.ejercicios:
                node.children.append(_node(exercise, 0.0, actual))
    return node


def build_analysis_tree(
    plan: Optional[TrainingPlan],
    actual: PercentageTree,
    *,
    include_unplanned: bool = False,
) -> List[AnalysisNode]:
    """
    Build the tipo -> area -> drill comparison tree.

    ``actual`` is keyed by canonical tipo/area names (see ``percentage_tree``);
    plan keys are canonicalised for the lookup but keep their spelling in the
    resulting nodes.
    """
    if plan is None:
        return []

    tree: List[AnalysisNode] = []
    matched_tipos: set[str] = set()

    for tipo_name, tipo_plan in plan.planificacion.items():
        tipo_key = canonical_key(tipo_name)
        matched_tipos.add(tipo_key)
        tipo_actual = actual.get(tipo_key, {})
        tipo_node = _node(tipo_name, tipo_plan.porcentaje_total, _sum_tipo(tipo_actual), children=[])

        matched_areas: set[str] = set()
        for area_name, area_plan in tipo_plan.areas.items():
            area_key = canonical_key(area_name)
            matched_areas.add(area_key)
            tipo_node.children.append(
                _area_node(area_name, area_plan, tipo_actual.get(area_key, {}), include_unplanned)
            )

        if include_unplanned:
            for area_key, area_actual in tipo_actual.items():
                if area_key not in matched_areas:
                    tipo_node.children.append(_unplanned_area_node(area_key, area_actual))
        tree.append(tipo_node)

    if include_unplanned:
        for tipo_key, tipo_actual in actual.items():
            if tipo_key in matched_tipos:
                continue
            tree.append(
                _node(
                    tipo_key,
                    0.0,
                    _sum_tipo(tipo_actual),
                    children=[_unplanned_area_node(area, values) for area, values in tipo_actual.items()],
                )
            )
    return tree


def find_unplanned(plan: Optional[TrainingPlan], actual: PercentageTree) -> List[str]:
    """List ``tipo > area > drill`` paths that were trained but are missing from the plan."""
    if plan is None:
        return []
    planned: Dict[str, Dict[str, PlanArea]] = {
        canonical_key(tipo): {canonical_key(area): entry for area, entry in tipo_plan.areas.items()}
        for tipo, tipo_plan in plan.planificacion.items()
    }
    missing: List[str] = []
    for tipo, areas in actual.items():
        if tipo not in planned:
            missing.append(tipo)
            continue
        for area, drills in areas.items():
            area_plan = planned[tipo].get(area)
            if area_plan is None:
                missing.append(f"{tipo} > {area}")
                continue
            if area_plan.ejercicios is None:
                continue
            missing.extend(f"{tipo} > {area} > {drill}" for drill in drills if drill not in area_plan.ejercicios)
    return missing


def validate_plan(plan: TrainingPlan, *, tolerance: float | None = None) -> PlanValidation:
    """
    Check that plan percentages are consistent.

    The tipo totals must add up to 100%. Areas may not exceed their tipo and
    drills may not exceed their area; leaving part of a level unassigned is
    only a warning, since the coach may want a free distribution.
    """
    tol = get_config().plan_tolerance if tolerance is None else tolerance
    errors: List[str] = []
    warnings: List[str] = []

    if not plan.planificacion:
        errors.append("The plan has no planned training types.")
        return PlanValidation(is_valid=False, errors=errors, warnings=warnings)

    grand_total = math.fsum(tipo.porcentaje_total for tipo in plan.planificacion.values())
    if abs(grand_total - 100) > tol:
        errors.append(f"Type percentages must add up to 100%; currently {grand_total:.2f}%.")

    for tipo_name, tipo in plan.planificacion.items():
        if tipo.porcentaje_total <= 0:
            continue
        if not tipo.areas:
            warnings.append(f"{tipo_name}: {tipo.porcentaje_total:g}% not broken down by area.")
            continue

        area_total = math.fsum(area.porcentaje_del_total for area in tipo.areas.values())
        if area_total > tipo.porcentaje_total + tol:
            errors.append(
                f"{tipo_name}: areas ({area_total:.1f}%) exceed the type total ({tipo.porcentaje_total:g}%)."
            )
        elif area_total < tipo.porcentaje_total - tol:
            warnings.append(f"{tipo_name}: {tipo.porcentaje_total - area_total:.1f}% not broken down by area.")

        for area_name, area in tipo.areas.items():
            if area.porcentaje_del_total <= 0:
                continue
            if not area.ejercicios:
                warnings.append(
                    f"{tipo_name} > {area_name}: {area.porcentaje_del_total:g}% not broken down by exercise."
                )
                continue
            drills_total = math.fsum(area.ejercicios.values())
            if drills_total > area.porcentaje_del_total + tol:
                errors.append(
                    f"{tipo_name} > {area_name}: exercises ({drills_total:.1f}%) exceed "
                    f"the area total ({area.porcentaje_del_total:g}%)."
                )
            elif drills_total < area.porcentaje_del_total - tol:
                warnings.append(
                    f"{tipo_name} > {area_name}: {area.porcentaje_del_total - drills_total:.1f}% "
                    "not broken down by exercise."
                )

    return PlanValidation(is_valid=not errors, errors=errors, warnings=warnings)


def detect_flexible_distribution(plan: TrainingPlan, *, tolerance: float | None = None) -> bool:
    """True when some planned time is left for the coach to distribute freely."""
    tol = get_config().plan_tolerance if tolerance is None else tolerance
    for tipo in plan.planificacion.values():
        if tipo.porcentaje_total <= 0:
            continue
        if not tipo.areas:
            return True
        area_total = math.fsum(area.porcentaje_del_total for area in tipo.areas.values())
        if area_total < tipo.porcentaje_total - tol:
            return True
        for area in tipo.areas.values():
            if area.porcentaje_del_total <= 0:
                continue
            if not area.ejercicios:
                return True
            if math.fsum(area.ejercicios.values()) < area.porcentaje_del_total - tol:
                return True
    return False
