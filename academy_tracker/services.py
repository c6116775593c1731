from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from .analysis import (
    ExerciseStats,
    calculate_exercise_stats,
    collect_exercises,
    percentage_tree,
)
from .config import get_config
from .models import (
    AnalysisNode,
    LoggedExercise,
    TrainingPlan,
    TrainingSession,
    ValidationError,
    clamp_intensity,
    new_id,
    parse_iso_date,
)
from .planning import build_analysis_tree, find_unplanned
from . import storage

LOGGER = logging.getLogger(__name__)

NO_PLAN_MESSAGE = "No training plan found for this player"
LOAD_ERROR_MESSAGE = "Error loading analysis data"

PlanLoader = Callable[[str, str], Optional[TrainingPlan]]
SessionLoader = Callable[[str], List[TrainingSession]]


def sessions_in_window(
    sessions: Sequence[TrainingSession],
    player_id: str,
    window_days: int,
    *,
    today: date | None = None,
) -> List[TrainingSession]:
    """Keep the player's sessions dated within the last ``window_days`` days."""
    end = today or date.today()
    start = end - timedelta(days=window_days)
    return [
        session
        for session in sessions
        if session.jugador_id == player_id and start <= session.fecha <= end
    ]


@dataclass
class AnalysisState:
    """Everything a caller needs to render the plan adherence view."""

    loading: bool = False
    error: str = ""
    plan: Optional[TrainingPlan] = None
    sessions: List[TrainingSession] = field(default_factory=list)
    stats: Optional[ExerciseStats] = None
    tree: List[AnalysisNode] = field(default_factory=list)
    unplanned: List[str] = field(default_factory=list)
    has_current_session_data: bool = False
    window_days: int = 0

    @property
    def has_plan(self) -> bool:
        return self.plan is not None

    @property
    def total_sessions(self) -> int:
        return len(self.sessions) + (1 if self.has_current_session_data else 0)


class PlanningAnalysis:
    """
    Load a player's plan and recent sessions and compare them.

    Every call to ``load`` takes a new generation number; a load that finishes
    after a newer one has started is discarded, so a slow, stale request can
    never overwrite fresher results.
    """

    def __init__(
        self,
        academia_id: str,
        player_id: str,
        *,
        window_days: int | None = None,
        current_exercises: Sequence[LoggedExercise] = (),
        include_unplanned: bool = False,
        plan_loader: PlanLoader = storage.get_training_plan,
        session_loader: SessionLoader = storage.get_sessions,
    ) -> None:
        self.academia_id = academia_id
        self.player_id = player_id
        # None means "use the plan's rangoAnalisis" (or the configured default).
        self.window_days = window_days
        self.current_exercises = list(current_exercises)
        self.include_unplanned = include_unplanned
        self._plan_loader = plan_loader
        self._session_loader = session_loader
        self._lock = threading.Lock()
        self._generation = 0
        self.state = AnalysisState()

    def begin_load(self) -> int:
        with self._lock:
            self._generation += 1
            self.state.loading = True
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _commit(self, generation: int, state: AnalysisState) -> bool:
        with self._lock:
            if generation != self._generation:
                LOGGER.debug("Discarding stale analysis load %d (current %d)", generation, self._generation)
                return False
            self.state = state
            return True

    def load(self, *, today: date | None = None) -> AnalysisState:
        """Fetch plan and sessions, then rebuild the comparison tree."""
        generation = self.begin_load()
        try:
            plan = self._plan_loader(self.academia_id, self.player_id)
            all_sessions = self._session_loader(self.academia_id)
        except (OSError, ValueError) as exc:
            LOGGER.exception("Loading analysis data for %s failed: %s", self.player_id, exc)
            self._commit(generation, AnalysisState(error=LOAD_ERROR_MESSAGE))
            return self.state

        window = self.resolve_window(plan)
        sessions = sessions_in_window(all_sessions, self.player_id, window, today=today)
        state = self.compute(plan, sessions)
        state.window_days = window
        if plan is None:
            state.error = NO_PLAN_MESSAGE
        self._commit(generation, state)
        return self.state

    def resolve_window(self, plan: Optional[TrainingPlan]) -> int:
        if self.window_days:
            return self.window_days
        if plan is not None:
            return plan.rango_analisis
        return get_config().analysis_window_days

    def compute(self, plan: Optional[TrainingPlan], sessions: List[TrainingSession]) -> AnalysisState:
        """Pure part of the analysis: aggregate and compare, no I/O."""
        exercises = collect_exercises(sessions, self.current_exercises)
        stats = calculate_exercise_stats(exercises)
        actual = percentage_tree(stats)
        return AnalysisState(
            plan=plan,
            sessions=sessions,
            stats=stats,
            tree=build_analysis_tree(plan, actual, include_unplanned=self.include_unplanned),
            unplanned=find_unplanned(plan, actual),
            has_current_session_data=bool(self.current_exercises),
        )


def parse_exercise_spec(spec: str) -> LoggedExercise:
    """
    Parse ``tipo|area|ejercicio|tiempo[|intensidad]`` as typed on the command line.
    """
    parts = [part.strip() for part in spec.split("|")]
    if len(parts) not in (4, 5):
        raise ValidationError(
            f"Exercise must look like 'tipo|area|ejercicio|tiempo[|intensidad]'; received {spec!r}."
        )
    tipo, area, ejercicio, tiempo = parts[:4]
    if not tipo or not area:
        raise ValidationError(f"Exercise needs a tipo and an area; received {spec!r}.")
    intensity = clamp_intensity(parts[4]) if len(parts) == 5 and parts[4] else None
    return LoggedExercise(
        id=new_id(),
        tipo=tipo,
        area=area,
        ejercicio=ejercicio,
        tiempo_cantidad=tiempo,
        intensidad=intensity,
    )


def build_session_from_inputs(
    *,
    player_id: str,
    exercises: Sequence[str],
    date_text: str | None = None,
    coach_id: str | None = None,
    notes: str | None = None,
) -> TrainingSession:
    """Convert CLI inputs into a validated session."""
    player = (player_id or "").strip()
    if not player:
        raise ValidationError("player is required.")
    if not exercises:
        raise ValidationError("At least one exercise is required.")
    session_date = parse_iso_date(date_text, field="date") if date_text else date.today()
    return TrainingSession(
        id=new_id(),
        jugador_id=player,
        fecha=session_date,
        ejercicios=[parse_exercise_spec(item) for item in exercises],
        entrenador_id=(coach_id or "").strip() or None,
        observaciones=(notes or "").strip() or None,
    )


def _format_pct(value: float) -> str:
    return f"{value:.1f}%"


def flatten_tree(tree: Sequence[AnalysisNode]) -> List[dict[str, Any]]:
    """Depth-first rows (with depth and dotted path) for tables and exports."""
    rows: List[dict[str, Any]] = []

    def _walk(nodes: Sequence[AnalysisNode], depth: int, prefix: str) -> None:
        for node in nodes:
            path = f"{prefix} > {node.name}" if prefix else node.name
            rows.append(
                {
                    "depth": depth,
                    "path": path,
                    "name": node.name,
                    "planificado": node.planificado,
                    "realizado": node.realizado,
                    "diferencia": node.diferencia,
                    "libre": bool(node.es_distribucion_libre),
                }
            )
            _walk(node.children or [], depth + 1, path)

    _walk(tree, 0, "")
    return rows


def render_analysis_table(tree: Sequence[AnalysisNode]) -> str:
    """Render a fixed-width planned/actual/difference table."""
    headers = ("category", "planned", "actual", "diff")
    rows = [
        {
            "category": "  " * row["depth"] + row["name"] + (" *" if row["libre"] else ""),
            "planned": _format_pct(row["planificado"]),
            "actual": _format_pct(row["realizado"]),
            "diff": f"{row['diferencia']:+.1f}",
        }
        for row in flatten_tree(tree)
    ]
    widths = {key: len(key) for key in headers}
    for row in rows:
        for key in headers:
            widths[key] = max(widths[key], len(row[key]))

    def _format_line(values: dict[str, str]) -> str:
        first = values["category"].ljust(widths["category"])
        rest = "  ".join(values[key].rjust(widths[key]) for key in headers[1:])
        return f"{first}  {rest}"

    header_line = _format_line({key: key.upper() for key in headers})
    body = "\n".join(_format_line(row) for row in rows)
    return "\n".join(filter(None, [header_line, body]))


def build_rich_tree(tree: Sequence[AnalysisNode], *, title: str = "Plan adherence") -> Any:
    """Build a ``rich.tree.Tree`` for terminal output."""
    from rich.markup import escape
    from rich.tree import Tree

    root = Tree(f"[bold]{escape(title)}[/bold]")

    def _label(node: AnalysisNode) -> str:
        colour = "green" if abs(node.diferencia) <= get_config().thresholds.optimal else (
            "red" if node.diferencia > 0 else "yellow"
        )
        free = " [dim](free distribution)[/dim]" if node.es_distribucion_libre else ""
        return (
            f"{escape(node.name)}: planned {_format_pct(node.planificado)}, actual {_format_pct(node.realizado)} "
            f"[{colour}]({node.diferencia:+.1f})[/{colour}]{free}"
        )

    def _attach(parent: Any, nodes: Sequence[AnalysisNode]) -> None:
        for node in nodes:
            branch = parent.add(_label(node))
            _attach(branch, node.children or [])

    _attach(root, tree)
    return root


def generate_adherence_plot(tree: Sequence[AnalysisNode], output_path: Path, *, title: str | None = None) -> Path:
    """Grouped planned/actual bar chart, one group per training type."""
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:  # pragma: no cover - exercised via CLI
        raise RuntimeError("matplotlib is required to generate plots.") from exc

    if not tree:
        raise ValueError("Nothing to plot: the analysis tree is empty.")

    labels = [node.name for node in tree]
    planned = [node.planificado for node in tree]
    actual = [node.realizado for node in tree]
    positions = list(range(len(labels)))
    width = 0.38

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots()
    ax.bar([pos - width / 2 for pos in positions], planned, width, label="Planned", color="#1F3C88")
    ax.bar([pos + width / 2 for pos in positions], actual, width, label="Actual", color="#4C72B0", alpha=0.8)
    ax.set_xticks(positions)
    ax.set_xticklabels(labels)
    ax.set_ylabel("Share of training time (%)")
    ax.set_title(title or "Planned vs Actual by Training Type")
    ax.legend()
    ax.grid(axis="y", linestyle="--", alpha=0.4)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
