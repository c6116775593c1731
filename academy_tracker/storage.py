from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Iterable, List, Mapping, Tuple

from .constants import LEGACY_AREA_RENAMES
from .env import get_env
from .models import (
    DEFAULT_EVALUACION,
    EVALUACION_SCORES,
    SESSION_SCHEMA_VERSION,
    TOURNAMENT_SCHEMA_VERSION,
    DisputedTournament,
    Objective,
    PostTrainingSurvey,
    TrainingPlan,
    TrainingSession,
    ValidationError,
    new_id,
)
from .planning import detect_flexible_distribution, validate_plan

DEFAULT_DATA_DIR = Path("data")
SESSIONS_FILENAME = "sessions.json"
PLANS_FILENAME = "training_plans.json"
TOURNAMENTS_FILENAME = "disputed_tournaments.json"
SURVEYS_FILENAME = "surveys.json"
OBJECTIVES_FILENAME = "objectives.json"
LOGGER = logging.getLogger(__name__)

# Legacy 5-step performance scale mapped onto the current 6-step evaluation.
LEGACY_RENDIMIENTO_TO_EVALUACION = {
    "Muy malo": "Muy malo",
    "Malo": "Malo",
    "Bueno": "Bueno",
    "Muy bueno": "Muy bueno",
    "Excelente": "Excelente",
}
LEGACY_TOURNAMENT_FIELDS = ("rendimientoJugador", "conformidadGeneral")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _data_dir() -> Path:
    override = get_env("DATA_DIR")
    base = Path(override).expanduser() if override else DEFAULT_DATA_DIR
    base.mkdir(parents=True, exist_ok=True)
    return base


def _academia_dir(academia_id: str) -> Path:
    cleaned = (academia_id or "").strip()
    if not cleaned:
        raise ValidationError("academia id is required.")
    if any(char in cleaned for char in ("/", "\\")) or cleaned in {".", ".."}:
        raise ValidationError(f"Invalid academia id {academia_id!r}.")
    path = _data_dir() / "academias" / cleaned
    path.mkdir(parents=True, exist_ok=True)
    return path


def _write_json(target: Path, payload: Any) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    with NamedTemporaryFile("w", dir=target.parent, delete=False, encoding="utf-8") as tmp:
        tmp.write(text)
        temp_path = Path(tmp.name)
    temp_path.replace(target)


def _read_json(target: Path, empty: Any) -> Any:
    if not target.exists():
        return empty
    raw = target.read_text(encoding="utf-8").strip()
    if not raw:
        return empty
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Could not parse {target}: {exc}") from exc
    if not isinstance(payload, type(empty)):
        raise ValueError(f"{target} must contain a JSON {type(empty).__name__}")
    return payload


# --- migrations -------------------------------------------------------------


def _is_legacy_area(area: Any) -> bool:
    return isinstance(area, str) and area in LEGACY_AREA_RENAMES


def migrate_session_record(record: Mapping[str, Any]) -> Tuple[dict[str, Any], bool]:
    """Upgrade one stored session document; returns the new record and whether it changed."""
    upgraded = dict(record)
    mutated = False

    exercises = upgraded.get("ejercicios")
    if isinstance(exercises, list):
        renamed: list[Any] = []
        for exercise in exercises:
            if isinstance(exercise, dict) and _is_legacy_area(exercise.get("area")):
                exercise = {**exercise, "area": LEGACY_AREA_RENAMES[exercise["area"]]}
                mutated = True
            renamed.append(exercise)
        upgraded["ejercicios"] = renamed

    schema_raw = upgraded.get("schemaVersion")
    if isinstance(schema_raw, int) and schema_raw > SESSION_SCHEMA_VERSION:
        schema_value = schema_raw
    else:
        schema_value = SESSION_SCHEMA_VERSION
    if schema_raw != schema_value:
        upgraded["schemaVersion"] = schema_value
        mutated = True
    return upgraded, mutated


def migrate_tournament_record(record: Mapping[str, Any]) -> Tuple[dict[str, Any], bool]:
    """
    Upgrade a disputed tournament from schema 1 to schema 2.

    Schema 1 rated the player with ``rendimientoJugador`` (plus an overall
    ``conformidadGeneral``); schema 2 keeps a single ``evaluacionGeneral``.
    """
    upgraded = dict(record)
    mutated = False

    if upgraded.get("evaluacionGeneral") not in EVALUACION_SCORES:
        legacy = upgraded.get("rendimientoJugador")
        upgraded["evaluacionGeneral"] = LEGACY_RENDIMIENTO_TO_EVALUACION.get(legacy, DEFAULT_EVALUACION)
        mutated = True
    for key in LEGACY_TOURNAMENT_FIELDS:
        if key in upgraded:
            del upgraded[key]
            mutated = True

    if upgraded.get("schemaVersion") != TOURNAMENT_SCHEMA_VERSION:
        upgraded["schemaVersion"] = TOURNAMENT_SCHEMA_VERSION
        mutated = True
    return upgraded, mutated


def _migrate_all(records: list[Any], migrate) -> Tuple[list[Any], int]:
    upgraded: list[Any] = []
    changed = 0
    for record in records:
        if isinstance(record, dict):
            migrated, mutated = migrate(record)
            upgraded.append(migrated)
            changed += int(mutated)
        else:
            upgraded.append(record)
    return upgraded, changed


def _load_records(academia_id: str, filename: str, migrate, *, strict: bool = False) -> List[dict[str, Any]]:
    path = _academia_dir(academia_id) / filename
    records = _read_json(path, [])
    upgraded, changed = _migrate_all(records, migrate)
    if changed:
        LOGGER.info("Migrated %d record(s) in %s", changed, path)
        try:
            _write_json(path, upgraded)
        except OSError as exc:
            if strict:
                raise
            LOGGER.warning("Could not persist migrated records to %s: %s", path, exc)
    return [record for record in upgraded if isinstance(record, dict)]


def check_migrations(academia_id: str) -> dict[str, int]:
    """Count stored records that would change on the next load, without writing."""
    base = _academia_dir(academia_id)
    sessions = _read_json(base / SESSIONS_FILENAME, [])
    tournaments = _read_json(base / TOURNAMENTS_FILENAME, [])
    legacy_exercises = sum(
        1
        for record in sessions
        if isinstance(record, dict) and isinstance(record.get("ejercicios"), list)
        for exercise in record["ejercicios"]
        if isinstance(exercise, dict) and _is_legacy_area(exercise.get("area"))
    )
    return {
        "sessions": _migrate_all(sessions, migrate_session_record)[1],
        "exercises": legacy_exercises,
        "tournaments": _migrate_all(tournaments, migrate_tournament_record)[1],
    }


def migrate_academia(academia_id: str) -> dict[str, int]:
    """Rewrite every legacy record of an academia; returns the pending counts that were applied."""
    pending = check_migrations(academia_id)
    _load_records(academia_id, SESSIONS_FILENAME, migrate_session_record, strict=True)
    _load_records(academia_id, TOURNAMENTS_FILENAME, migrate_tournament_record, strict=True)
    return pending


# --- sessions ---------------------------------------------------------------


def get_sessions(academia_id: str) -> List[TrainingSession]:
    """Return every session of the academia; invalid documents are skipped with a warning."""
    sessions: List[TrainingSession] = []
    for record in _load_records(academia_id, SESSIONS_FILENAME, migrate_session_record):
        try:
            sessions.append(TrainingSession.from_dict(record))
        except ValidationError as exc:
            LOGGER.warning("Skipping invalid session %s: %s", record.get("id"), exc)
    return sessions


def add_session(academia_id: str, session: TrainingSession) -> str:
    path = _academia_dir(academia_id) / SESSIONS_FILENAME
    records = _load_records(academia_id, SESSIONS_FILENAME, migrate_session_record)
    if not session.id:
        session.id = new_id()
    records.append(session.to_dict())
    _write_json(path, records)
    LOGGER.info("Session %s stored for player %s", session.id, session.jugador_id)
    return session.id


def get_session_by_id(academia_id: str, session_id: str) -> TrainingSession | None:
    if not session_id:
        return None
    for record in _load_records(academia_id, SESSIONS_FILENAME, migrate_session_record):
        if str(record.get("id")) == str(session_id):
            return TrainingSession.from_dict(record)
    return None


def update_session(academia_id: str, session_id: str, updates: Mapping[str, Any]) -> TrainingSession:
    """Apply a partial document update to a stored session."""
    if not session_id:
        raise ValidationError("session id is required.")
    path = _academia_dir(academia_id) / SESSIONS_FILENAME
    records = _load_records(academia_id, SESSIONS_FILENAME, migrate_session_record)
    for index, record in enumerate(records):
        if str(record.get("id")) != str(session_id):
            continue
        candidate = {**record, **dict(updates), "id": record.get("id")}
        updated = TrainingSession.from_dict(candidate)
        records[index] = updated.to_dict()
        _write_json(path, records)
        return updated
    raise KeyError(f"Session {session_id} not found.")


def delete_session(academia_id: str, session_id: str) -> None:
    if not session_id:
        raise ValidationError("session id is required.")
    path = _academia_dir(academia_id) / SESSIONS_FILENAME
    records = _load_records(academia_id, SESSIONS_FILENAME, migrate_session_record)
    remaining = [record for record in records if str(record.get("id")) != str(session_id)]
    if len(remaining) == len(records):
        raise KeyError(f"Session {session_id} not found.")
    _write_json(path, remaining)
    LOGGER.info("Session %s deleted", session_id)


# --- training plans ---------------------------------------------------------


def _load_plans(academia_id: str) -> dict[str, Any]:
    return _read_json(_academia_dir(academia_id) / PLANS_FILENAME, {})


def get_training_plan(academia_id: str, player_id: str) -> TrainingPlan | None:
    """Return the player's plan, or None when the coach has not written one."""
    record = _load_plans(academia_id).get(player_id)
    if not isinstance(record, dict):
        return None
    plan = TrainingPlan.from_dict({"jugadorId": player_id, **record})
    if plan.academia_id is None:
        plan.academia_id = academia_id
    if plan.usa_distribucion_flexible is None:
        plan.usa_distribucion_flexible = detect_flexible_distribution(plan)
    return plan


def save_training_plan(academia_id: str, plan: TrainingPlan, *, validate: bool = True) -> TrainingPlan:
    """
    Create or replace a player's plan.

    Inconsistent percentages raise ``ValidationError`` unless ``validate`` is
    False; warnings (unassigned percentages) are only logged.
    """
    if not plan.jugador_id:
        raise ValidationError("jugadorId is required.")
    if validate:
        result = validate_plan(plan)
        if not result.is_valid:
            raise ValidationError("Invalid training plan: " + " ".join(result.errors))
        for warning in result.warnings:
            LOGGER.warning("Plan for %s: %s", plan.jugador_id, warning)

    plans = _load_plans(academia_id)
    existing = plans.get(plan.jugador_id)
    timestamp = _now_utc().isoformat()
    if isinstance(existing, dict) and existing.get("fechaCreacion"):
        plan.fecha_creacion = existing["fechaCreacion"]
    else:
        plan.fecha_creacion = timestamp
    plan.fecha_actualizacion = timestamp
    plan.academia_id = academia_id
    plan.usa_distribucion_flexible = detect_flexible_distribution(plan)

    plans[plan.jugador_id] = plan.to_dict()
    _write_json(_academia_dir(academia_id) / PLANS_FILENAME, plans)
    LOGGER.info("Training plan saved for player %s", plan.jugador_id)
    return plan


def delete_training_plan(academia_id: str, player_id: str) -> None:
    plans = _load_plans(academia_id)
    if player_id not in plans:
        raise KeyError(f"No training plan stored for player {player_id}.")
    del plans[player_id]
    _write_json(_academia_dir(academia_id) / PLANS_FILENAME, plans)
    LOGGER.info("Training plan deleted for player %s", player_id)


# --- disputed tournaments ---------------------------------------------------


def add_disputed_tournament(academia_id: str, tournament: DisputedTournament) -> str:
    path = _academia_dir(academia_id) / TOURNAMENTS_FILENAME
    records = _load_records(academia_id, TOURNAMENTS_FILENAME, migrate_tournament_record)
    tournament.fecha_registro = _now_utc().isoformat()
    records.append(tournament.to_dict())
    _write_json(path, records)
    return tournament.id


def get_disputed_tournaments(
    academia_id: str,
    player_id: str | None = None,
    *,
    start: date | None = None,
    end: date | None = None,
) -> List[DisputedTournament]:
    """Tournaments newest first, optionally for one player and a start-date range."""
    results: List[DisputedTournament] = []
    for record in _load_records(academia_id, TOURNAMENTS_FILENAME, migrate_tournament_record):
        try:
            tournament = DisputedTournament.from_dict(record)
        except ValidationError as exc:
            LOGGER.warning("Skipping invalid tournament %s: %s", record.get("id"), exc)
            continue
        if player_id and tournament.jugador_id != player_id:
            continue
        if start and tournament.fecha_inicio < start:
            continue
        if end and tournament.fecha_inicio > end:
            continue
        results.append(tournament)
    return sorted(results, key=lambda item: item.fecha_inicio, reverse=True)


def update_disputed_tournament(academia_id: str, tournament_id: str, updates: Mapping[str, Any]) -> DisputedTournament:
    path = _academia_dir(academia_id) / TOURNAMENTS_FILENAME
    records = _load_records(academia_id, TOURNAMENTS_FILENAME, migrate_tournament_record)
    for index, record in enumerate(records):
        if str(record.get("id")) != str(tournament_id):
            continue
        updated = DisputedTournament.from_dict({**record, **dict(updates), "id": record.get("id")})
        updated.fecha_registro = _now_utc().isoformat()
        records[index] = updated.to_dict()
        _write_json(path, records)
        return updated
    raise KeyError(f"Tournament {tournament_id} not found.")


def delete_disputed_tournament(academia_id: str, tournament_id: str) -> None:
    path = _academia_dir(academia_id) / TOURNAMENTS_FILENAME
    records = _load_records(academia_id, TOURNAMENTS_FILENAME, migrate_tournament_record)
    remaining = [record for record in records if str(record.get("id")) != str(tournament_id)]
    if len(remaining) == len(records):
        raise KeyError(f"Tournament {tournament_id} not found.")
    _write_json(path, remaining)


# --- post-training surveys -------------------------------------------------


def _read_records(academia_id: str, filename: str) -> List[dict[str, Any]]:
    records = _read_json(_academia_dir(academia_id) / filename, [])
    return [record for record in records if isinstance(record, dict)]


def _surveys(academia_id: str) -> List[PostTrainingSurvey]:
    surveys: List[PostTrainingSurvey] = []
    for record in _read_records(academia_id, SURVEYS_FILENAME):
        try:
            surveys.append(PostTrainingSurvey.from_dict(record))
        except ValidationError as exc:
            LOGGER.warning("Skipping invalid survey %s: %s", record.get("id"), exc)
    return surveys


def add_post_training_survey(academia_id: str, survey: PostTrainingSurvey) -> str:
    """Store a survey; a session can only be answered once."""
    if get_survey_by_session_id(academia_id, survey.session_id) is not None:
        raise ValidationError(f"Session {survey.session_id} already has a survey.")
    records = _read_records(academia_id, SURVEYS_FILENAME)
    records.append(survey.to_dict())
    _write_json(_academia_dir(academia_id) / SURVEYS_FILENAME, records)
    LOGGER.info("Survey %s stored for session %s", survey.id, survey.session_id)
    return survey.id


def check_survey_exists(academia_id: str, player_id: str, day: date) -> bool:
    return any(
        survey.jugador_id == player_id and survey.fecha == day for survey in _surveys(academia_id)
    )


def get_player_surveys(
    academia_id: str,
    player_id: str,
    *,
    start: date | None = None,
    end: date | None = None,
) -> List[PostTrainingSurvey]:
    """A player's surveys newest first, optionally limited to an inclusive date range."""
    results = [
        survey
        for survey in _surveys(academia_id)
        if survey.jugador_id == player_id
        and (start is None or survey.fecha >= start)
        and (end is None or survey.fecha <= end)
    ]
    return sorted(results, key=lambda item: item.fecha, reverse=True)


def get_survey_by_session_id(academia_id: str, session_id: str) -> PostTrainingSurvey | None:
    for survey in _surveys(academia_id):
        if survey.session_id == session_id:
            return survey
    return None


def update_survey(academia_id: str, survey_id: str, updates: Mapping[str, Any]) -> PostTrainingSurvey:
    records = _read_records(academia_id, SURVEYS_FILENAME)
    for index, record in enumerate(records):
        if str(record.get("id")) != str(survey_id):
            continue
        updated = PostTrainingSurvey.from_dict({**record, **dict(updates), "id": record.get("id")})
        records[index] = updated.to_dict()
        _write_json(_academia_dir(academia_id) / SURVEYS_FILENAME, records)
        return updated
    raise KeyError(f"Survey {survey_id} not found.")


# --- objectives -------------------------------------------------------------


def add_objective(academia_id: str, objective: Objective) -> str:
    records = _read_records(academia_id, OBJECTIVES_FILENAME)
    records.append(objective.to_dict())
    _write_json(_academia_dir(academia_id) / OBJECTIVES_FILENAME, records)
    LOGGER.info("Objective %s added for player %s", objective.id, objective.jugador_id)
    return objective.id


def get_objectives(academia_id: str, player_id: str | None = None) -> List[Objective]:
    objectives: List[Objective] = []
    for record in _read_records(academia_id, OBJECTIVES_FILENAME):
        try:
            objective = Objective.from_dict(record)
        except ValidationError as exc:
            LOGGER.warning("Skipping invalid objective %s: %s", record.get("id"), exc)
            continue
        if player_id and objective.jugador_id != player_id:
            continue
        objectives.append(objective)
    return objectives


def update_objective(academia_id: str, objective_id: str, updates: Mapping[str, Any]) -> Objective:
    """Apply a partial update (text, body or estado) to one objective."""
    records = _read_records(academia_id, OBJECTIVES_FILENAME)
    for index, record in enumerate(records):
        if str(record.get("id")) != str(objective_id):
            continue
        updated = Objective.from_dict({**record, **dict(updates), "id": record.get("id")})
        records[index] = updated.to_dict()
        _write_json(_academia_dir(academia_id) / OBJECTIVES_FILENAME, records)
        return updated
    raise KeyError(f"Objective {objective_id} not found.")


def delete_objective(academia_id: str, objective_id: str) -> None:
    records = _read_records(academia_id, OBJECTIVES_FILENAME)
    remaining = [record for record in records if str(record.get("id")) != str(objective_id)]
    if len(remaining) == len(records):
        raise KeyError(f"Objective {objective_id} not found.")
    _write_json(_academia_dir(academia_id) / OBJECTIVES_FILENAME, remaining)


def iter_player_ids(sessions: Iterable[TrainingSession]) -> List[str]:
    """Distinct player ids in first-seen order."""
    seen: dict[str, None] = {}
    for session in sessions:
        seen.setdefault(session.jugador_id, None)
    return list(seen)
