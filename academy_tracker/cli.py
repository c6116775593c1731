from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console

from .config import as_dict as config_as_dict, get_config
from .metrics import export_exercises_csv
from .models import (
    DEFAULT_EVALUACION,
    DEFAULT_OBJECTIVE_ESTADO,
    EVALUACION_LEVELS,
    OBJECTIVE_ESTADOS,
    DisputedTournament,
    Objective,
    PostTrainingSurvey,
    TrainingPlan,
    ValidationError,
    parse_iso_date,
)
from .planning import validate_plan
from .recommendations import OPTIMAL, PlayerInput, PlayerRecommendations, plans_with_adaptation, recommend_for_group
from .reports import generate_adherence_report
from .services import (
    LOAD_ERROR_MESSAGE,
    AnalysisState,
    PlanningAnalysis,
    build_rich_tree,
    build_session_from_inputs,
    render_analysis_table,
    sessions_in_window,
)
from .storage import (
    add_disputed_tournament,
    add_objective,
    add_post_training_survey,
    add_session,
    check_migrations,
    delete_objective,
    delete_training_plan,
    get_disputed_tournaments,
    get_objectives,
    get_player_surveys,
    get_session_by_id,
    get_sessions,
    get_training_plan,
    iter_player_ids,
    migrate_academia,
    save_training_plan,
    update_objective,
)

app = typer.Typer(help="Plan, log, and compare tennis academy training sessions.")
plan_app = typer.Typer(help="Create, inspect, and validate training plans.")
tournament_app = typer.Typer(help="Record tournaments players have taken part in.")
survey_app = typer.Typer(help="Record how players felt after training.")
objective_app = typer.Typer(help="Track player objectives.")

ACADEMIA_OPTION = typer.Option(..., "--academia", "-a", help="Academia identifier.")
SURVEY_LABELS = {
    "cansancio_fisico": "fatigue",
    "concentracion": "focus",
    "actitud_mental": "attitude",
    "sensaciones_tenisticas": "feel",
}


def _fail(message: str, *, code: int = 1) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


@app.callback()
def _main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log progress details (INFO level) to stderr.",
    ),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
        logging.getLogger("academy_tracker").setLevel(logging.INFO)


def _load_sessions_or_fail(academia_id: str) -> list:
    try:
        return get_sessions(academia_id)
    except ValueError as exc:
        _fail(f"Could not read sessions: {exc}")
    return []


def _read_plan_file(path: Path, player_id: str, window: Optional[int]) -> TrainingPlan:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValidationError(f"Could not read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError(f"{path} must contain a JSON object.")

    # Accept either a full plan document or just its "planificacion" mapping.
    document = dict(payload) if "planificacion" in payload else {"planificacion": payload}
    document["jugadorId"] = player_id
    if window is not None:
        document["rangoAnalisis"] = window
    return TrainingPlan.from_dict(document)


@app.command("log-session")
def log_session(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
    exercise: List[str] = typer.Option(
        [],
        "--exercise",
        "-e",
        help="Exercise as 'tipo|area|ejercicio|tiempo|intensidad' (repeatable).",
    ),
    coach: Optional[str] = typer.Option(None, "--coach", help="Coach identifier."),
    date_text: Optional[str] = typer.Option(
        None,
        "--date",
        "-d",
        help="Session date in YYYY-MM-DD format (defaults to today).",
    ),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-form notes about the session."),
) -> None:
    """
    Log a training session.

    Example:
        academy log-session -a club -p ana -e "Canasto|Juego de red|Voleas|15m|7"
    """
    try:
        session = build_session_from_inputs(
            player_id=player,
            exercises=exercise,
            date_text=date_text,
            coach_id=coach,
            notes=notes,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        session_id = add_session(academia, session)
    except ValueError as exc:
        _fail(f"Could not store session: {exc}")
        return

    typer.echo(
        f"Logged session {session_id} for {session.jugador_id} on {session.fecha.isoformat()} "
        f"({len(session.ejercicios)} exercise{'s' if len(session.ejercicios) != 1 else ''})."
    )


@plan_app.command("set")
def plan_set(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
    file: Path = typer.Option(..., "--file", "-f", help="JSON file with the plan or its 'planificacion'."),
    window: Optional[int] = typer.Option(None, "--window", "-w", min=1, help="Analysis window in days."),
    force: bool = typer.Option(False, "--force", help="Store the plan even if percentages are inconsistent."),
) -> None:
    """Create or replace a player's training plan."""
    try:
        plan = _read_plan_file(file, player, window)
        saved = save_training_plan(academia, plan, validate=not force)
    except ValidationError as exc:
        _fail(str(exc))
        return
    except ValueError as exc:
        _fail(f"Could not store plan: {exc}")
        return

    typer.echo(f"Saved training plan for {saved.jugador_id} ({len(saved.planificacion)} types).")
    if saved.usa_distribucion_flexible:
        typer.echo("Plan leaves part of the time for free distribution.")


@plan_app.command("show")
def plan_show(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
) -> None:
    """Print a stored plan as JSON."""
    try:
        plan = get_training_plan(academia, player)
    except ValueError as exc:
        _fail(f"Could not read plans: {exc}")
        return
    if plan is None:
        typer.echo("No training plan found for this player")
        raise typer.Exit(code=0)
    typer.echo(json.dumps(plan.to_dict(), indent=2, ensure_ascii=False))


@plan_app.command("validate")
def plan_validate(
    file: Path = typer.Option(..., "--file", "-f", help="JSON file with the plan to check."),
) -> None:
    """Check plan percentages without storing anything."""
    try:
        plan = _read_plan_file(file, "validation", None)
    except ValidationError as exc:
        _fail(str(exc))
        return

    result = validate_plan(plan)
    for warning in result.warnings:
        typer.secho(f"warning: {warning}", fg=typer.colors.YELLOW)
    if not result.is_valid:
        _fail("\n".join(f"error: {error}" for error in result.errors))
    typer.echo("Plan is valid.")


@plan_app.command("delete")
def plan_delete(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
) -> None:
    """Remove a player's plan."""
    try:
        delete_training_plan(academia, player)
    except KeyError as exc:
        _fail(str(exc.args[0]))
        return
    except ValueError as exc:
        _fail(f"Could not delete plan: {exc}")
        return
    typer.echo(f"Deleted training plan for {player}.")


def _analysis_payload(state: AnalysisState) -> dict[str, Any]:
    return {
        "hasPlan": state.has_plan,
        "totalSessions": state.total_sessions,
        "windowDays": state.window_days,
        "totalMinutes": state.stats.total_minutes if state.stats else 0.0,
        "error": state.error or None,
        "tree": [node.to_dict() for node in state.tree],
        "unplanned": state.unplanned,
    }


@app.command()
def analyze(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
    window: Optional[int] = typer.Option(
        None,
        "--window",
        "-w",
        min=1,
        help="Days to look back (defaults to the plan's analysis range).",
    ),
    include_unplanned: bool = typer.Option(
        False,
        "--include-unplanned",
        help="Also list trained categories the plan does not mention.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the comparison as JSON."),
    plain: bool = typer.Option(False, "--plain", help="Print a plain-text table instead of a tree."),
) -> None:
    """
    Compare a player's plan with the training logged in the analysis window.

    Examples:
        academy analyze -a club -p ana
        academy analyze -a club -p ana --window 14 --include-unplanned --json
    """
    analysis = PlanningAnalysis(academia, player, window_days=window, include_unplanned=include_unplanned)
    state = analysis.load()
    if state.error == LOAD_ERROR_MESSAGE:
        _fail(state.error)

    if as_json:
        typer.echo(json.dumps(_analysis_payload(state), indent=2, ensure_ascii=False))
        return

    if not state.has_plan:
        typer.echo(state.error)
        raise typer.Exit(code=0)

    typer.echo(
        f"{player}: {state.total_sessions} session{'s' if state.total_sessions != 1 else ''} "
        f"in the last {state.window_days} days."
    )
    if plain:
        typer.echo(render_analysis_table(state.tree))
    else:
        Console().print(build_rich_tree(state.tree, title=f"Plan adherence: {player}"))
    if state.unplanned:
        typer.secho("Trained but not planned: " + ", ".join(state.unplanned), fg=typer.colors.YELLOW)


def _echo_player_recommendations(result: PlayerRecommendations, verbose: bool) -> None:
    typer.secho(
        f"{result.player_id}: {result.total_minutes} min over {result.sessions_analyzed} sessions "
        f"({result.plan_used} plan)",
        bold=True,
    )
    items = result.items if verbose else [item for item in result.items if item.action != OPTIMAL]
    if not items:
        typer.echo("  Training matches the plan.")
    for item in items:
        scope = item.area if item.level == "TIPO" else f"{item.parent_type} > {item.area}"
        typer.echo(
            f"  [{item.priority}] {item.action} {scope}: {item.current_percentage}% vs "
            f"{item.planned_percentage}% planned (gap {item.gap:+.1f})"
        )


@app.command()
def recommend(
    academia: str = ACADEMIA_OPTION,
    player: List[str] = typer.Option(
        [],
        "--player",
        "-p",
        help="Players in the group (repeatable). Defaults to everyone with sessions in the window.",
    ),
    window: Optional[int] = typer.Option(None, "--window", "-w", min=1, help="Days to look back."),
    show_all: bool = typer.Option(False, "--all", help="Also show categories already on target."),
) -> None:
    """Suggest what each player (and the group) should work on next."""
    window_days = window or get_config().analysis_window_days
    sessions = _load_sessions_or_fail(academia)
    if player:
        player_ids = list(dict.fromkeys(item.strip() for item in player if item.strip()))
    else:
        cutoff = date.today() - timedelta(days=window_days)
        player_ids = iter_player_ids(session for session in sessions if cutoff <= session.fecha <= date.today())
    if not player_ids:
        typer.echo("No players with sessions in the analysis window.")
        raise typer.Exit(code=0)

    try:
        plans = plans_with_adaptation(player_ids, lambda player_id: get_training_plan(academia, player_id))
    except ValueError as exc:
        _fail(f"Could not read plans: {exc}")
        return

    inputs = []
    for player_id in player_ids:
        recent = sessions_in_window(sessions, player_id, window_days)
        inputs.append(
            PlayerInput(
                player_id=player_id,
                exercises=[exercise for session in recent for exercise in session.ejercicios],
                sessions_count=len(recent),
                plan=plans.get(player_id),
            )
        )

    individual, group = recommend_for_group(inputs)
    for player_id in player_ids:
        _echo_player_recommendations(individual[player_id], show_all)
    if len(player_ids) > 1:
        typer.echo("")
        typer.secho(
            f"Group ({group.analyzed_players}/{group.total_players} players with data)",
            bold=True,
        )
        averages = ", ".join(f"{tipo} {value}%" for tipo, value in group.averages.items())
        typer.echo(f"  Average distribution: {averages}")
        for coincidence in group.strong_coincidences:
            typer.echo(
                f"  {coincidence.action} {coincidence.area}: {coincidence.player_count} players "
                f"(average gap {coincidence.average_gap:+.1f})"
            )
    typer.echo(group.recommendation)


@app.command()
def export(
    academia: str = ACADEMIA_OPTION,
    to: Path = typer.Option(Path("export/exercises.csv"), "--to", "-t", help="Destination CSV file."),
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Only export this player's sessions."),
    window: Optional[int] = typer.Option(None, "--window", "-w", min=1, help="Only export the last N days."),
) -> None:
    """
    Export logged exercises to CSV, one row per exercise.

    Example:
        academy export -a club --player ana --window 30 --to export/ana.csv
    """
    sessions = _load_sessions_or_fail(academia)
    if player:
        sessions = [session for session in sessions if session.jugador_id == player]
    if window:
        cutoff = date.today() - timedelta(days=window)
        sessions = [session for session in sessions if cutoff <= session.fecha <= date.today()]
    if not sessions:
        typer.echo("No sessions matched the provided filters.")
        raise typer.Exit(code=0)

    rows = export_exercises_csv(sessions, to)
    typer.echo(f"Exported {rows} exercises from {len(sessions)} sessions to {to}")


@app.command()
def report(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
    window: Optional[int] = typer.Option(None, "--window", "-w", min=1, help="Days to look back."),
    output_dir: Path = typer.Option(Path("reports"), "--output-dir", "-o", help="Directory for the PDF."),
) -> None:
    """Build a PDF plan adherence report for one player."""
    state = PlanningAnalysis(academia, player, window_days=window).load()
    if state.error:
        _fail(state.error)
    try:
        path = generate_adherence_report(
            state,
            academia_id=academia,
            player_id=player,
            window_days=state.window_days,
            output_dir=output_dir,
        )
    except (RuntimeError, ValueError) as exc:
        _fail(f"Could not build report: {exc}")
        return
    typer.echo(f"Report written to {path}")


@tournament_app.command("add")
def tournament_add(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
    name: str = typer.Option(..., "--name", "-n", help="Tournament name."),
    start: str = typer.Option(..., "--start", help="First day (YYYY-MM-DD)."),
    end: Optional[str] = typer.Option(None, "--end", help="Last day (YYYY-MM-DD)."),
    result: str = typer.Option(..., "--result", "-r", help="Result reached (e.g. 'Cuartos de final')."),
    level: int = typer.Option(3, "--level", "-l", help="Difficulty from 1 (easy) to 5 (hard)."),
    evaluation: str = typer.Option(
        DEFAULT_EVALUACION,
        "--evaluation",
        help=f"Overall evaluation: {', '.join(EVALUACION_LEVELS)}.",
    ),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-form notes."),
) -> None:
    """Record a tournament a player took part in."""
    try:
        tournament = DisputedTournament(
            jugador_id=player.strip(),
            nombre_torneo=name.strip(),
            fecha_inicio=parse_iso_date(start, field="start"),
            fecha_fin=parse_iso_date(end, field="end") if end else None,
            resultado=result.strip(),
            nivel_dificultad=level,
            evaluacion_general=evaluation,
            observaciones=(notes or "").strip() or None,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        tournament_id = add_disputed_tournament(academia, tournament)
    except ValueError as exc:
        _fail(f"Could not store tournament: {exc}")
        return
    typer.echo(f"Recorded tournament {tournament_id} for {tournament.jugador_id}.")


@tournament_app.command("list")
def tournament_list(
    academia: str = ACADEMIA_OPTION,
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Only this player's tournaments."),
    since: Optional[str] = typer.Option(None, "--since", help="Only tournaments starting on/after this date."),
) -> None:
    """List tournaments, newest first."""
    try:
        since_date = parse_iso_date(since, field="since") if since else None
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    try:
        tournaments = get_disputed_tournaments(academia, player, start=since_date)
    except ValueError as exc:
        _fail(f"Could not read tournaments: {exc}")
        return
    if not tournaments:
        typer.echo("No tournaments recorded.")
        raise typer.Exit(code=0)
    for item in tournaments:
        typer.echo(
            f"{item.fecha_inicio.isoformat()}  {item.jugador_id}  {item.nombre_torneo}  "
            f"{item.resultado}  level {item.nivel_dificultad}  {item.evaluacion_general}"
        )


@app.command()
def migrate(
    academia: str = ACADEMIA_OPTION,
    dry_run: bool = typer.Option(False, "--dry-run", help="Only report what would change."),
) -> None:
    """Upgrade stored documents to the current schema."""
    try:
        counts = migrate_academia(academia) if not dry_run else check_migrations(academia)
    except (OSError, ValueError) as exc:
        _fail(f"Could not migrate: {exc}")
        return
    verb = "Would migrate" if dry_run else "Migrated"
    typer.echo(
        f"{verb} {counts['sessions']} sessions ({counts['exercises']} exercises) "
        f"and {counts['tournaments']} tournaments."
    )


@app.command("config")
def config_show() -> None:
    """
    Show the effective configuration (analysis window, recommendation thresholds).
    """
    config = config_as_dict()
    typer.echo(f"Config source: {config.get('source')}")
    typer.echo(f"Analysis window: {config.get('analysis_window_days')} days")
    typer.echo(f"Plan tolerance: {config.get('plan_tolerance')}")
    thresholds = config.get("thresholds", {})
    typer.echo(
        "Recommendation thresholds: "
        f"optimal<={thresholds.get('optimal')}, medium>{thresholds.get('medium')}, high>{thresholds.get('high')}"
    )


def _survey_line(survey: PostTrainingSurvey) -> str:
    answers = "  ".join(f"{SURVEY_LABELS[key]} {value}" for key, value in survey.answers.items())
    return f"{survey.fecha.isoformat()}  {survey.session_id}  {answers}"


@survey_app.command("add")
def survey_add(
    academia: str = ACADEMIA_OPTION,
    session_id: str = typer.Option(..., "--session", "-s", help="Session the survey answers."),
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Player identifier (defaults to the session's)."),
    date_text: Optional[str] = typer.Option(None, "--date", "-d", help="Survey date (defaults to the session's)."),
    fatigue: Optional[int] = typer.Option(None, "--fatigue", min=1, max=5, help="Physical tiredness, 1-5."),
    focus: Optional[int] = typer.Option(None, "--focus", min=1, max=5, help="Concentration, 1-5."),
    attitude: Optional[int] = typer.Option(None, "--attitude", min=1, max=5, help="Mental attitude, 1-5."),
    feel: Optional[int] = typer.Option(None, "--feel", min=1, max=5, help="Feel for the ball, 1-5."),
) -> None:
    """
    Record how a player felt after a training session.

    Example:
        academy survey add -a club -s 3f2c --fatigue 4 --focus 3 --attitude 5 --feel 4
    """
    try:
        session = get_session_by_id(academia, session_id)
    except ValueError as exc:
        _fail(f"Could not read sessions: {exc}")
        return
    player_id = player or (session.jugador_id if session else None)
    if not player_id:
        raise typer.BadParameter(f"Session {session_id} not found; pass --player.")

    try:
        if date_text:
            day = parse_iso_date(date_text, field="date")
        else:
            day = session.fecha if session else date.today()
        survey = PostTrainingSurvey(
            jugador_id=player_id,
            session_id=session_id,
            fecha=day,
            cansancio_fisico=fatigue,
            concentracion=focus,
            actitud_mental=attitude,
            sensaciones_tenisticas=feel,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        survey_id = add_post_training_survey(academia, survey)
    except ValueError as exc:
        _fail(f"Could not store survey: {exc}")
        return
    typer.echo(f"Recorded survey {survey_id} for session {session_id}.")


@survey_app.command("list")
def survey_list(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
    since: Optional[str] = typer.Option(None, "--since", help="Only surveys on/after this date."),
    until: Optional[str] = typer.Option(None, "--until", help="Only surveys on/before this date."),
) -> None:
    """List a player's surveys, newest first."""
    try:
        start = parse_iso_date(since, field="since") if since else None
        end = parse_iso_date(until, field="until") if until else None
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    try:
        surveys = get_player_surveys(academia, player, start=start, end=end)
    except ValueError as exc:
        _fail(f"Could not read surveys: {exc}")
        return
    if not surveys:
        typer.echo("No surveys recorded.")
        raise typer.Exit(code=0)
    for survey in surveys:
        typer.echo(_survey_line(survey))


@objective_app.command("add")
def objective_add(
    academia: str = ACADEMIA_OPTION,
    player: str = typer.Option(..., "--player", "-p", help="Player identifier."),
    text: str = typer.Option(..., "--text", "-t", help="Short statement of the objective."),
    body: Optional[str] = typer.Option(None, "--body", help="Longer description."),
    status: str = typer.Option(
        DEFAULT_OBJECTIVE_ESTADO,
        "--status",
        help=f"One of {', '.join(OBJECTIVE_ESTADOS)}.",
    ),
) -> None:
    """Add an objective for a player."""
    try:
        objective = Objective(jugador_id=player.strip(), texto_objetivo=text, estado=status, cuerpo_objetivo=body)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    try:
        objective_id = add_objective(academia, objective)
    except ValueError as exc:
        _fail(f"Could not store objective: {exc}")
        return
    typer.echo(f"Added objective {objective_id} for {objective.jugador_id}.")


@objective_app.command("list")
def objective_list(
    academia: str = ACADEMIA_OPTION,
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Only this player's objectives."),
) -> None:
    """List objectives with their status."""
    try:
        objectives = get_objectives(academia, player)
    except ValueError as exc:
        _fail(f"Could not read objectives: {exc}")
        return
    if not objectives:
        typer.echo("No objectives recorded.")
        raise typer.Exit(code=0)
    for item in objectives:
        typer.echo(f"{item.id}  {item.jugador_id}  [{item.estado}]  {item.texto_objetivo}")


@objective_app.command("update")
def objective_update(
    academia: str = ACADEMIA_OPTION,
    objective_id: str = typer.Argument(..., help="Objective identifier."),
    text: Optional[str] = typer.Option(None, "--text", "-t", help="New statement."),
    body: Optional[str] = typer.Option(None, "--body", help="New description."),
    status: Optional[str] = typer.Option(None, "--status", help=f"One of {', '.join(OBJECTIVE_ESTADOS)}."),
) -> None:
    """Change an objective's text, description or status."""
    updates = {
        key: value
        for key, value in (("textoObjetivo", text), ("cuerpoObjetivo", body), ("estado", status))
        if value is not None
    }
    if not updates:
        raise typer.BadParameter("Nothing to update; pass --text, --body or --status.")
    try:
        updated = update_objective(academia, objective_id, updates)
    except KeyError as exc:
        _fail(str(exc.args[0]))
        return
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except ValueError as exc:
        _fail(f"Could not update objective: {exc}")
        return
    typer.echo(f"Updated objective {updated.id} ({updated.estado}).")


@objective_app.command("delete")
def objective_delete(
    academia: str = ACADEMIA_OPTION,
    objective_id: str = typer.Argument(..., help="Objective identifier."),
) -> None:
    """Remove an objective."""
    try:
        delete_objective(academia, objective_id)
    except KeyError as exc:
        _fail(str(exc.args[0]))
        return
    except ValueError as exc:
        _fail(f"Could not delete objective: {exc}")
        return
    typer.echo(f"Deleted objective {objective_id}.")


app.add_typer(plan_app, name="plan", help="Training plan management.")
app.add_typer(tournament_app, name="tournament", help="Disputed tournaments.")
app.add_typer(survey_app, name="survey", help="Post-training surveys.")
app.add_typer(objective_app, name="objective", help="Player objectives.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
