from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

import pandas as pd

from .analysis import canonical_key, exercise_label, parse_duration_minutes
from .models import TrainingSession

EXERCISE_COLUMNS = [
    "date",
    "session_id",
    "jugador_id",
    "tipo",
    "area",
    "ejercicio",
    "minutes",
    "intensidad",
]


def _as_session(item: Mapping[str, object] | TrainingSession) -> TrainingSession:
    if isinstance(item, TrainingSession):
        return item
    if isinstance(item, Mapping):
        return TrainingSession.from_dict(item)
    raise TypeError(f"Unsupported session type: {type(item)!r}")


def exercises_to_dataframe(sessions: Sequence[Mapping[str, object] | TrainingSession]) -> pd.DataFrame:
    """One row per logged exercise, keyed by canonical tipo/area names."""
    records: list[dict[str, object]] = []
    for item in sessions:
        session = _as_session(item)
        for exercise in session.ejercicios:
            records.append(
                {
                    "date": pd.to_datetime(session.fecha),
                    "session_id": session.id,
                    "jugador_id": session.jugador_id,
                    "tipo": canonical_key(exercise.tipo),
                    "area": canonical_key(exercise.area),
                    "ejercicio": exercise_label(exercise),
                    "minutes": parse_duration_minutes(exercise.tiempo_cantidad),
                    "intensidad": exercise.intensidad,
                }
            )

    if not records:
        return pd.DataFrame(columns=EXERCISE_COLUMNS)

    df = pd.DataFrame(records, columns=EXERCISE_COLUMNS)
    df["intensidad"] = df["intensidad"].astype("float64")
    df.sort_values(["jugador_id", "date", "session_id"], inplace=True, kind="stable")
    df.reset_index(drop=True, inplace=True)
    return df


def weekly_minutes_by_type(df_exercises: pd.DataFrame) -> pd.DataFrame:
    """Minutes per ISO week (``YYYY-Www``) and tipo."""
    if df_exercises.empty:
        return pd.DataFrame()

    iso = df_exercises["date"].dt.isocalendar()
    weeks = iso["year"].astype(str) + "-W" + iso["week"].astype(int).map("{:02d}".format)
    table = (
        df_exercises.assign(week=weeks)
        .pivot_table(index="week", columns="tipo", values="minutes", aggfunc="sum", fill_value=0.0)
        .sort_index()
    )
    table.columns.name = None
    return table


def intensity_by_date(df_exercises: pd.DataFrame) -> pd.DataFrame:
    """Mean logged intensity per session date; exercises without intensity are ignored."""
    columns = ["date", "intensidad_media", "exercises"]
    if df_exercises.empty:
        return pd.DataFrame(columns=columns)

    rated = df_exercises.dropna(subset=["intensidad"])
    if rated.empty:
        return pd.DataFrame(columns=columns)

    daily = (
        rated.groupby("date", as_index=False)
        .agg(intensidad_media=("intensidad", "mean"), exercises=("intensidad", "count"))
        .sort_values("date")
        .reset_index(drop=True)
    )
    return daily[columns]


def export_exercises_csv(sessions: Sequence[Mapping[str, object] | TrainingSession], path: Path) -> int:
    """Write the exercise table to ``path``; returns the number of rows written."""
    df = exercises_to_dataframe(sessions)
    path.parent.mkdir(parents=True, exist_ok=True)
    export = df.copy()
    if not export.empty:
        export["date"] = export["date"].dt.date.astype(str)
    export.to_csv(path, index=False)
    return len(export)
