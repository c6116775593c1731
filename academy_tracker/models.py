from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

SESSION_SCHEMA_VERSION = 2
TOURNAMENT_SCHEMA_VERSION = 2

EVALUACION_LEVELS: tuple[str, ...] = (
    "Muy malo",
    "Malo",
    "Regular",
    "Bueno",
    "Muy bueno",
    "Excelente",
)
EVALUACION_SCORES: dict[str, int] = {label: index for index, label in enumerate(EVALUACION_LEVELS, start=1)}
DEFAULT_EVALUACION = "Regular"

# Post-training survey questions, each answered on a 1-5 scale.
SURVEY_FIELDS: dict[str, str] = {
    "cansancio_fisico": "cansancioFisico",
    "concentracion": "concentracion",
    "actitud_mental": "actitudMental",
    "sensaciones_tenisticas": "sensacionesTenisticas",
}

OBJECTIVE_ESTADOS: tuple[str, ...] = ("actual-progreso", "consolidacion", "incorporado")
DEFAULT_OBJECTIVE_ESTADO = "actual-progreso"

__all__ = [
    "parse_iso_date",
    "coerce_number",
    "coerce_percentage",
    "clamp_intensity",
    "new_id",
    "LoggedExercise",
    "TrainingSession",
    "PlanArea",
    "PlanType",
    "TrainingPlan",
    "AnalysisNode",
    "DisputedTournament",
    "PostTrainingSurvey",
    "Objective",
    "ValidationError",
]


class ValidationError(ValueError):
    """Raised when user-supplied data cannot be normalised safely."""


def new_id() -> str:
    return uuid.uuid4().hex


def parse_iso_date(value: Any, *, field: str = "date") -> date:
    """
    Parse user-supplied ISO-8601 dates.

    Accepts `datetime.date`, `datetime.datetime`, or strings (a trailing time
    component such as ``2024-05-01T10:30:00.000Z`` is tolerated and dropped).
    Raises `ValidationError` with a friendlier message if the payload cannot be parsed.
    """
    if isinstance(value, date):
        return value if not isinstance(value, datetime) else value.date()

    if not isinstance(value, str):
        raise ValidationError(
            f"{field} must be provided as YYYY-MM-DD text; received {value!r}."
        )

    candidate = value.strip()
    if not candidate:
        raise ValidationError(f"{field} cannot be empty.")
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be a valid ISO date (YYYY-MM-DD); received {value!r}."
        ) from exc

    return parsed.date()


def coerce_number(
    value: Any,
    *,
    field: str = "value",
    minimum: float | None = None,
    maximum: float | None = None,
    allow_float: bool = True,
) -> float:
    """
    Convert arbitrary input into a float with guardrails.

    The `minimum` and `maximum` bounds (inclusive) trigger a ValidationError when
    breached. When `allow_float` is False, the coerced number must be whole.
    """
    if value is None:
        raise ValidationError(f"{field} is required.")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required.")
        try:
            number = float(stripped)
        except ValueError as exc:
            raise ValidationError(f"{field} must be a number; received {value!r}.") from exc
    else:
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if not allow_float and number != round(number):
        raise ValidationError(f"{field} must be an integer; received {value!r}.")

    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be >= {minimum}; received {number}.")

    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be <= {maximum}; received {number}.")

    return number


def coerce_percentage(value: Any, *, field: str = "percentage") -> float:
    """Percentages are non-negative and never above 100."""
    return coerce_number(value, field=field, minimum=0.0, maximum=100.0)


def clamp_intensity(value: Any, *, field: str = "intensidad") -> int:
    """
    Coerce an exercise intensity into an integer between 1 and 10.

    Values outside the bounds are gently clamped to keep datasets consistent.
    """
    coerced = coerce_number(value, field=field, allow_float=False)

    lower, upper = 1, 10
    if coerced < lower:
        return lower
    if coerced > upper:
        return upper
    return int(coerced)


def _required_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if isinstance(value, (list, dict)):
        raise ValidationError(f"{key} must be text; received {value!r}.")
    return str(value or "")


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class LoggedExercise:
    """A single drill logged during a training session."""

    id: str
    tipo: str
    area: str
    ejercicio: str
    tiempo_cantidad: str
    intensidad: Optional[int] = None
    ejercicio_especifico: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LoggedExercise":
        raw_intensity = payload.get("intensidad")
        try:
            intensity = clamp_intensity(raw_intensity) if raw_intensity is not None else None
        except ValidationError:
            intensity = None
        raw_time = payload.get("tiempoCantidad")
        return cls(
            id=str(payload.get("id") or new_id()),
            tipo=_required_text(payload, "tipo"),
            area=_required_text(payload, "area"),
            ejercicio=_required_text(payload, "ejercicio"),
            tiempo_cantidad="" if raw_time is None else str(raw_time),
            intensidad=intensity,
            ejercicio_especifico=_optional_str(payload.get("ejercicioEspecifico")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "tipo": self.tipo,
            "area": self.area,
            "ejercicio": self.ejercicio,
            "tiempoCantidad": self.tiempo_cantidad,
        }
        if self.intensidad is not None:
            payload["intensidad"] = self.intensidad
        if self.ejercicio_especifico:
            payload["ejercicioEspecifico"] = self.ejercicio_especifico
        return payload


@dataclass
class TrainingSession:
    """A completed training session for one player."""

    id: str
    jugador_id: str
    fecha: date
    ejercicios: List[LoggedExercise] = field(default_factory=list)
    entrenador_id: Optional[str] = None
    observaciones: Optional[str] = None
    schema_version: int = SESSION_SCHEMA_VERSION

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TrainingSession":
        raw_exercises = payload.get("ejercicios") or []
        if not isinstance(raw_exercises, list):
            raise ValidationError("ejercicios must be a list.")
        jugador_id = _optional_str(payload.get("jugadorId"))
        if not jugador_id:
            raise ValidationError("jugadorId is required.")
        try:
            schema_version = int(payload.get("schemaVersion", SESSION_SCHEMA_VERSION))
        except (TypeError, ValueError):
            schema_version = SESSION_SCHEMA_VERSION
        return cls(
            id=str(payload.get("id") or new_id()),
            jugador_id=jugador_id,
            fecha=parse_iso_date(payload.get("fecha"), field="fecha"),
            ejercicios=[LoggedExercise.from_dict(item) for item in raw_exercises if isinstance(item, Mapping)],
            entrenador_id=_optional_str(payload.get("entrenadorId")),
            observaciones=_optional_str(payload.get("observaciones")),
            schema_version=schema_version,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Make the session JSON serialisable."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "jugadorId": self.jugador_id,
            "fecha": self.fecha.isoformat(),
            "ejercicios": [exercise.to_dict() for exercise in self.ejercicios],
            "schemaVersion": self.schema_version,
        }
        if self.entrenador_id:
            payload["entrenadorId"] = self.entrenador_id
        if self.observaciones:
            payload["observaciones"] = self.observaciones
        return payload


@dataclass
class PlanArea:
    porcentaje_del_total: float
    # None means the coach left the split between drills open.
    ejercicios: Optional[Dict[str, float]] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, path: str) -> "PlanArea":
        raw_exercises = payload.get("ejercicios")
        exercises: Optional[Dict[str, float]] = None
        if isinstance(raw_exercises, Mapping):
            exercises = {}
            for name, entry in raw_exercises.items():
                value = entry.get("porcentajeDelTotal") if isinstance(entry, Mapping) else entry
                exercises[str(name)] = coerce_percentage(value, field=f"{path} > {name}")
        return cls(
            porcentaje_del_total=coerce_percentage(payload.get("porcentajeDelTotal", 0), field=path),
            ejercicios=exercises,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"porcentajeDelTotal": self.porcentaje_del_total}
        if self.ejercicios is not None:
            payload["ejercicios"] = {
                name: {"porcentajeDelTotal": value} for name, value in self.ejercicios.items()
            }
        return payload


@dataclass
class PlanType:
    porcentaje_total: float
    areas: Dict[str, PlanArea] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, path: str) -> "PlanType":
        raw_areas = payload.get("areas") or {}
        if not isinstance(raw_areas, Mapping):
            raise ValidationError(f"{path}: areas must be a mapping.")
        return cls(
            porcentaje_total=coerce_percentage(payload.get("porcentajeTotal", 0), field=path),
            areas={
                str(name): PlanArea.from_dict(entry, path=f"{path} > {name}")
                for name, entry in raw_areas.items()
                if isinstance(entry, Mapping)
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "porcentajeTotal": self.porcentaje_total,
            "areas": {name: area.to_dict() for name, area in self.areas.items()},
        }


@dataclass
class TrainingPlan:
    """Coach-authored target distribution of training time for one player."""

    jugador_id: str
    planificacion: Dict[str, PlanType] = field(default_factory=dict)
    academia_id: Optional[str] = None
    rango_analisis: int = 30
    fecha_creacion: Optional[str] = None
    fecha_actualizacion: Optional[str] = None
    usa_distribucion_flexible: Optional[bool] = None

    @property
    def id(self) -> str:
        # Plans are stored one per player, keyed by the player id.
        return self.jugador_id

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TrainingPlan":
        jugador_id = _optional_str(payload.get("jugadorId"))
        if not jugador_id:
            raise ValidationError("jugadorId is required.")
        raw_plan = payload.get("planificacion") or {}
        if not isinstance(raw_plan, Mapping):
            raise ValidationError("planificacion must be a mapping.")
        try:
            window = int(payload.get("rangoAnalisis") or 30)
        except (TypeError, ValueError):
            window = 30
        flexible = payload.get("usaDistribucionFlexible")
        return cls(
            jugador_id=jugador_id,
            planificacion={
                str(name): PlanType.from_dict(entry, path=str(name))
                for name, entry in raw_plan.items()
                if isinstance(entry, Mapping)
            },
            academia_id=_optional_str(payload.get("academiaId")),
            rango_analisis=window if window > 0 else 30,
            fecha_creacion=_optional_str(payload.get("fechaCreacion")),
            fecha_actualizacion=_optional_str(payload.get("fechaActualizacion")),
            usa_distribucion_flexible=flexible if isinstance(flexible, bool) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "jugadorId": self.jugador_id,
            "rangoAnalisis": self.rango_analisis,
            "planificacion": {name: tipo.to_dict() for name, tipo in self.planificacion.items()},
        }
        if self.academia_id:
            payload["academiaId"] = self.academia_id
        if self.fecha_creacion:
            payload["fechaCreacion"] = self.fecha_creacion
        if self.fecha_actualizacion:
            payload["fechaActualizacion"] = self.fecha_actualizacion
        if self.usa_distribucion_flexible is not None:
            payload["usaDistribucionFlexible"] = self.usa_distribucion_flexible
        return payload


@dataclass
class AnalysisNode:
    """Planned-versus-actual comparison for one tipo, area or drill."""

    name: str
    planificado: float
    realizado: float
    diferencia: float
    es_distribucion_libre: Optional[bool] = None
    children: Optional[List["AnalysisNode"]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "planificado": self.planificado,
            "realizado": self.realizado,
            "diferencia": self.diferencia,
        }
        if self.es_distribucion_libre is not None:
            payload["esDistribucionLibre"] = self.es_distribucion_libre
        if self.children is not None:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


@dataclass
class DisputedTournament:
    """Result of a tournament a player took part in (current schema)."""

    jugador_id: str
    nombre_torneo: str
    fecha_inicio: date
    resultado: str
    nivel_dificultad: int
    evaluacion_general: str = DEFAULT_EVALUACION
    id: str = field(default_factory=new_id)
    observaciones: Optional[str] = None
    fecha_registro: Optional[str] = None
    torneo_futuro_id: Optional[str] = None
    fecha_fin: Optional[date] = None

    def __post_init__(self) -> None:
        if self.evaluacion_general not in EVALUACION_SCORES:
            raise ValidationError(
                f"evaluacionGeneral must be one of {', '.join(EVALUACION_LEVELS)}; "
                f"received {self.evaluacion_general!r}."
            )
        level = coerce_number(self.nivel_dificultad, field="nivelDificultad", minimum=1, maximum=5, allow_float=False)
        self.nivel_dificultad = int(level)

    @property
    def evaluacion_score(self) -> int:
        return EVALUACION_SCORES[self.evaluacion_general]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DisputedTournament":
        jugador_id = _optional_str(payload.get("jugadorId"))
        if not jugador_id:
            raise ValidationError("jugadorId is required.")
        raw_end = payload.get("fechaFin")
        return cls(
            id=str(payload.get("id") or new_id()),
            jugador_id=jugador_id,
            nombre_torneo=str(payload.get("nombreTorneo") or "").strip(),
            fecha_inicio=parse_iso_date(payload.get("fechaInicio"), field="fechaInicio"),
            resultado=str(payload.get("resultado") or "").strip(),
            nivel_dificultad=payload.get("nivelDificultad", 1),
            evaluacion_general=str(payload.get("evaluacionGeneral") or DEFAULT_EVALUACION),
            observaciones=_optional_str(payload.get("observaciones")),
            fecha_registro=_optional_str(payload.get("fechaRegistro")),
            torneo_futuro_id=_optional_str(payload.get("torneoFuturoId")),
            fecha_fin=parse_iso_date(raw_end, field="fechaFin") if raw_end else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "jugadorId": self.jugador_id,
            "nombreTorneo": self.nombre_torneo,
            "fechaInicio": self.fecha_inicio.isoformat(),
            "resultado": self.resultado,
            "nivelDificultad": self.nivel_dificultad,
            "evaluacionGeneral": self.evaluacion_general,
            "schemaVersion": TOURNAMENT_SCHEMA_VERSION,
        }
        if self.observaciones:
            payload["observaciones"] = self.observaciones
        if self.fecha_registro:
            payload["fechaRegistro"] = self.fecha_registro
        if self.torneo_futuro_id:
            payload["torneoFuturoId"] = self.torneo_futuro_id
        if self.fecha_fin is not None:
            payload["fechaFin"] = self.fecha_fin.isoformat()
        return payload


def _survey_score(value: Any, *, field: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(coerce_number(value, field=field, minimum=1, maximum=5, allow_float=False))


@dataclass
class PostTrainingSurvey:
    """How a player felt after a session; unanswered questions stay None."""

    jugador_id: str
    session_id: str
    fecha: date
    cansancio_fisico: Optional[int] = None
    concentracion: Optional[int] = None
    actitud_mental: Optional[int] = None
    sensaciones_tenisticas: Optional[int] = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        for attribute, key in SURVEY_FIELDS.items():
            setattr(self, attribute, _survey_score(getattr(self, attribute), field=key))
        if all(getattr(self, attribute) is None for attribute in SURVEY_FIELDS):
            raise ValidationError("A survey needs at least one answered question.")

    @property
    def answers(self) -> Dict[str, int]:
        return {
            attribute: getattr(self, attribute)
            for attribute in SURVEY_FIELDS
            if getattr(self, attribute) is not None
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PostTrainingSurvey":
        jugador_id = _optional_str(payload.get("jugadorId"))
        if not jugador_id:
            raise ValidationError("jugadorId is required.")
        session_id = _optional_str(payload.get("sessionId"))
        if not session_id:
            raise ValidationError("sessionId is required.")
        return cls(
            id=str(payload.get("id") or new_id()),
            jugador_id=jugador_id,
            session_id=session_id,
            fecha=parse_iso_date(payload.get("fecha"), field="fecha"),
            **{attribute: payload.get(key) for attribute, key in SURVEY_FIELDS.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "jugadorId": self.jugador_id,
            "sessionId": self.session_id,
            "fecha": self.fecha.isoformat(),
        }
        for attribute, key in SURVEY_FIELDS.items():
            value = getattr(self, attribute)
            if value is not None:
                payload[key] = value
        return payload


@dataclass
class Objective:
    jugador_id: str
    texto_objetivo: str
    estado: str = DEFAULT_OBJECTIVE_ESTADO
    cuerpo_objetivo: Optional[str] = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        self.texto_objetivo = (self.texto_objetivo or "").strip()
        if not self.texto_objetivo:
            raise ValidationError("textoObjetivo cannot be empty.")
        if self.estado not in OBJECTIVE_ESTADOS:
            raise ValidationError(
                f"estado must be one of {', '.join(OBJECTIVE_ESTADOS)}; received {self.estado!r}."
            )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Objective":
        jugador_id = _optional_str(payload.get("jugadorId"))
        if not jugador_id:
            raise ValidationError("jugadorId is required.")
        return cls(
            id=str(payload.get("id") or new_id()),
            jugador_id=jugador_id,
            texto_objetivo=str(payload.get("textoObjetivo") or ""),
            estado=str(payload.get("estado") or DEFAULT_OBJECTIVE_ESTADO),
            cuerpo_objetivo=_optional_str(payload.get("cuerpoObjetivo")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "jugadorId": self.jugador_id,
            "textoObjetivo": self.texto_objetivo,
            "estado": self.estado,
        }
        if self.cuerpo_objetivo:
            payload["cuerpoObjetivo"] = self.cuerpo_objetivo
        return payload
