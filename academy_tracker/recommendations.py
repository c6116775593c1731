from __future__ import annotations

import logging
from dataclasses import dataclass, field
from statistics import mean
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .analysis import ExerciseStats, calculate_exercise_stats, canonical_key
from .config import RecommendationThresholds, get_config
from .constants import TRAINING_STRUCTURE, TRAINING_TYPES, default_area_percentages, default_type_percentages, even_split
from .models import LoggedExercise, TrainingPlan

LOGGER = logging.getLogger(__name__)

INCREASE = "INCREMENTAR"
REDUCE = "REDUCIR"
OPTIMAL = "OPTIMO"
_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass(frozen=True)
class RecItem:
    level: str
    parent_type: str
    area: str
    current_percentage: int
    planned_percentage: int
    gap: float
    action: str
    priority: str
    reason: str
    exercises: int
    minutes: int
    is_default: bool = False


@dataclass(frozen=True)
class PlayerRecommendations:
    player_id: str
    items: List[RecItem]
    total_exercises: int
    total_minutes: int
    sessions_analyzed: int
    plan_used: str


@dataclass(frozen=True)
class Coincidence:
    level: str
    area: str
    action: str
    player_count: int
    average_gap: float


@dataclass(frozen=True)
class GroupRecommendations:
    items: List[RecItem]
    analyzed_players: int
    total_players: int
    averages: Dict[str, int]
    strong_coincidences: List[Coincidence]
    recommendation: str


@dataclass
class PlayerInput:
    """Everything the engine needs to know about one player."""

    player_id: str
    exercises: List[LoggedExercise] = field(default_factory=list)
    sessions_count: int = 0
    plan: Optional[TrainingPlan] = None


def gap_action(gap: float, thresholds: RecommendationThresholds | None = None) -> str:
    """Map a signed gap (planned - actual) to the corrective action."""
    limits = thresholds or get_config().thresholds
    if abs(gap) <= limits.optimal:
        return OPTIMAL
    return INCREASE if gap > 0 else REDUCE


def gap_priority(gap: float, thresholds: RecommendationThresholds | None = None) -> str:
    limits = thresholds or get_config().thresholds
    magnitude = abs(gap)
    if magnitude > limits.high:
        return "high"
    if magnitude > limits.medium:
        return "medium"
    return "low"


def _reason(action: str, name: str, level: str, is_default: bool) -> str:
    suffix = " (using default targets)" if is_default else ""
    label = "type" if level == "TIPO" else "area"
    if action == OPTIMAL:
        return f"{name} is within the optimal range{suffix}"
    if action == INCREASE:
        return f"Deficit in {label} {name}{suffix}"
    return f"Excess in {label} {name}{suffix}"


def _planned_types(plan: Optional[TrainingPlan]) -> Dict[str, float]:
    if plan is None:
        return {}
    return {canonical_key(name): tipo.porcentaje_total for name, tipo in plan.planificacion.items()}


def _planned_area_total(plan: Optional[TrainingPlan], tipo: str, area: str) -> Optional[float]:
    if plan is None:
        return None
    for tipo_name, tipo_plan in plan.planificacion.items():
        if canonical_key(tipo_name) != tipo:
            continue
        for area_name, area_plan in tipo_plan.areas.items():
            if canonical_key(area_name) == area:
                return area_plan.porcentaje_del_total
    return None


def _default_area_share(tipo: str, area: str) -> float:
    for known_tipo, shares in default_area_percentages().items():
        if canonical_key(known_tipo) != tipo:
            continue
        for known_area, share in shares.items():
            if canonical_key(known_area) == area:
                return float(share)
        # An area this tipo does not usually include gets an equal share of the known ones.
        return float(even_split(tuple(TRAINING_STRUCTURE[known_tipo]) + (area,))[area])
    return 25.0


def _type_keys(plan: Optional[TrainingPlan], stats: ExerciseStats) -> List[str]:
    keys = [canonical_key(tipo) for tipo in TRAINING_TYPES]
    for key in list(_planned_types(plan)) + list(stats.type_stats):
        if key not in keys:
            keys.append(key)
    return keys


def _item(
    *,
    level: str,
    parent_type: str,
    area: str,
    current: float,
    planned: float,
    is_default: bool,
    exercises: int,
    minutes: float,
    thresholds: RecommendationThresholds,
) -> RecItem:
    gap = planned - current
    action = gap_action(gap, thresholds)
    return RecItem(
        level=level,
        parent_type=parent_type,
        area=area,
        current_percentage=round(current),
        planned_percentage=round(planned),
        gap=round(gap, 1),
        action=action,
        priority=gap_priority(gap, thresholds),
        reason=_reason(action, area, level, is_default),
        exercises=exercises,
        minutes=round(minutes),
        is_default=is_default,
    )


def _sort_items(items: List[RecItem]) -> List[RecItem]:
    return sorted(items, key=lambda item: (_PRIORITY_ORDER[item.priority], -abs(item.gap)))


def recommend_for_player(
    player: PlayerInput,
    *,
    thresholds: RecommendationThresholds | None = None,
) -> PlayerRecommendations:
    """
    Compare one player's training with their plan (or the default plan).

    Type items compare shares of total time. Area items compare the share of
    time *within* the type, so plan area percentages (relative to the total)
    are rescaled by the planned type percentage.
    """
    limits = thresholds or get_config().thresholds
    stats = calculate_exercise_stats(player.exercises)
    planned_types = _planned_types(player.plan)
    default_types = {canonical_key(key): value for key, value in default_type_percentages().items()}
    items: List[RecItem] = []

    for tipo in _type_keys(player.plan, stats):
        tipo_stats = stats.type_stats.get(tipo)
        current = tipo_stats.percentage if tipo_stats else 0.0
        planned_value = planned_types.get(tipo)
        is_default = not planned_value
        planned = float(planned_value) if planned_value else float(default_types.get(tipo, 0.0))
        trained = tipo_stats is not None and tipo_stats.total > 0
        item = _item(
            level="TIPO",
            parent_type=tipo,
            area=tipo,
            current=current,
            planned=planned,
            is_default=is_default,
            exercises=sum(1 for exercise in player.exercises if canonical_key(exercise.tipo) == tipo),
            minutes=tipo_stats.total if tipo_stats else 0.0,
            thresholds=limits,
        )
        if item.action != OPTIMAL or trained:
            items.append(item)

        if tipo_stats is None:
            continue
        for area, area_stats in tipo_stats.areas.items():
            area_current = area_stats.total / tipo_stats.total * 100 if tipo_stats.total > 0 else 0.0
            area_absolute = _planned_area_total(player.plan, tipo, area)
            area_is_default = not area_absolute or planned <= 0
            if area_is_default:
                area_planned = _default_area_share(tipo, area)
            else:
                area_planned = area_absolute / planned * 100
            area_item = _item(
                level="AREA",
                parent_type=tipo,
                area=area,
                current=area_current,
                planned=area_planned,
                is_default=area_is_default,
                exercises=len(area_stats.exercises),
                minutes=area_stats.total,
                thresholds=limits,
            )
            if area_item.action != OPTIMAL or area_stats.total > 0:
                items.append(area_item)

    return PlayerRecommendations(
        player_id=player.player_id,
        items=_sort_items(items),
        total_exercises=len(player.exercises),
        total_minutes=round(stats.total_minutes),
        sessions_analyzed=player.sessions_count,
        plan_used="real" if player.plan else "default",
    )


def _strong_coincidences(individual: Mapping[str, PlayerRecommendations]) -> List[Coincidence]:
    grouped: Dict[tuple[str, str, str], List[float]] = {}
    for result in individual.values():
        for item in result.items:
            if item.action == OPTIMAL:
                continue
            grouped.setdefault((item.level, item.area, item.action), []).append(item.gap)
    coincidences = [
        Coincidence(level=level, area=area, action=action, player_count=len(gaps), average_gap=round(mean(gaps), 1))
        for (level, area, action), gaps in grouped.items()
        if len(gaps) >= 2
    ]
    return sorted(coincidences, key=lambda entry: -entry.player_count)


def _group_text(coincidences: Sequence[Coincidence], items: Sequence[RecItem]) -> str:
    if coincidences:
        top = coincidences[0]
        if top.action == REDUCE:
            deficit = next((item for item in items if item.action == INCREASE and item.level == "TIPO"), None)
            alternative = deficit.area if deficit else "another exercise type"
            return (
                f"Suggestion: there is an excess of {top.area}. Start the session with {alternative} "
                f"exercises to balance training ({top.player_count} players, average gap "
                f"{abs(top.average_gap)}%)."
            )
        return (
            f"Suggestion: start with \"{top.area}\" exercises (increase), affecting {top.player_count} "
            f"players with an average gap of {abs(top.average_gap)}%."
        )

    urgent = next((item for item in items if item.priority == "high" and item.action != OPTIMAL), None)
    if urgent:
        verb = "increase" if urgent.action == INCREASE else "reduce"
        return f"Suggestion: prioritise {urgent.area} ({verb} {abs(urgent.gap)}%)."
    return "The group is balanced. Keep variety in the exercises."


def recommend_for_group(
    players: Sequence[PlayerInput],
    *,
    thresholds: RecommendationThresholds | None = None,
) -> tuple[Dict[str, PlayerRecommendations], GroupRecommendations]:
    """Build individual recommendations and the aggregated group view."""
    limits = thresholds or get_config().thresholds
    individual = {player.player_id: recommend_for_player(player, thresholds=limits) for player in players}
    stats_by_player = {player.player_id: calculate_exercise_stats(player.exercises) for player in players}
    default_types = {canonical_key(key): value for key, value in default_type_percentages().items()}

    type_keys: List[str] = [canonical_key(tipo) for tipo in TRAINING_TYPES]
    for stats in stats_by_player.values():
        type_keys.extend(key for key in stats.type_stats if key not in type_keys)

    averages: Dict[str, int] = {}
    group_items: List[RecItem] = []
    for tipo in type_keys:
        shares = [
            stats.type_stats[tipo].percentage if tipo in stats.type_stats else 0.0
            for stats in stats_by_player.values()
        ]
        averages[tipo] = round(mean(shares)) if shares else 0

        planned_values = [
            item.planned_percentage
            for result in individual.values()
            for item in result.items
            if item.level == "TIPO" and item.area == tipo
        ]
        planned = round(mean(planned_values)) if planned_values else default_types.get(tipo, 0)
        group_items.append(
            _item(
                level="TIPO",
                parent_type=tipo,
                area=tipo,
                current=averages[tipo],
                planned=planned,
                is_default=False,
                exercises=sum(
                    1 for player in players for exercise in player.exercises if canonical_key(exercise.tipo) == tipo
                ),
                minutes=sum(
                    stats.type_stats[tipo].total for stats in stats_by_player.values() if tipo in stats.type_stats
                ),
                thresholds=limits,
            )
        )

    coincidences = _strong_coincidences(individual)
    group = GroupRecommendations(
        items=group_items,
        analyzed_players=sum(1 for player in players if player.exercises),
        total_players=len(players),
        averages=averages,
        strong_coincidences=coincidences,
        recommendation=_group_text(coincidences, group_items),
    )
    LOGGER.info("Built recommendations for %d players (%d analysed)", group.total_players, group.analyzed_players)
    return individual, group


def plans_with_adaptation(
    player_ids: Sequence[str],
    load_plan: Callable[[str], Optional[TrainingPlan]],
) -> Dict[str, TrainingPlan]:
    """
    Resolve a plan for each player; players without one borrow a teammate's.

    Only used when more than one player trains together.
    """
    loaded = {player_id: load_plan(player_id) for player_id in player_ids}
    plans: Dict[str, TrainingPlan] = {}
    for player_id in player_ids:
        own = loaded[player_id]
        if own is not None:
            plans[player_id] = own
            continue
        if len(player_ids) < 2:
            continue
        for other_id in player_ids:
            borrowed = loaded[other_id]
            if other_id != player_id and borrowed is not None:
                LOGGER.info("Adapting plan of %s for %s", other_id, player_id)
                plans[player_id] = borrowed
                break
    return plans
