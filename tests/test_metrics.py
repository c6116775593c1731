from __future__ import annotations

import pandas as pd
import pytest

from academy_tracker.metrics import (
    EXERCISE_COLUMNS,
    export_exercises_csv,
    exercises_to_dataframe,
    intensity_by_date,
    weekly_minutes_by_type,
)


def _sessions() -> list[dict[str, object]]:
    return [
        {
            "id": "s1",
            "jugadorId": "ana",
            "fecha": "2024-05-06",
            "ejercicios": [
                {"tipo": "canasto", "area": "juego de red", "ejercicio": "Voleas", "tiempoCantidad": "15m", "intensidad": 6},
                {"tipo": "Peloteo", "area": "Puntos", "ejercicio": "Libres", "tiempoCantidad": "30", "intensidad": 8},
            ],
        },
        {
            "id": "s2",
            "jugadorId": "ana",
            "fecha": "2024-05-14",
            "ejercicios": [
                {"tipo": "Canasto", "area": "Juego de red", "ejercicio": "Smash", "tiempoCantidad": "10 min"},
                {"tipo": "Canasto", "area": "Juego de red", "ejercicio": "Smash", "tiempoCantidad": "n/a"},
            ],
        },
    ]


def test_exercises_to_dataframe_has_one_row_per_exercise() -> None:
    df = exercises_to_dataframe(_sessions())

    assert list(df.columns) == EXERCISE_COLUMNS
    assert len(df) == 4
    assert set(df["tipo"]) == {"Canasto", "Peloteo"}
    assert df.loc[0, "area"] == "Juego De Red"
    assert df["minutes"].tolist() == pytest.approx([15.0, 30.0, 10.0, 0.0])


def test_exercises_to_dataframe_handles_empty_input() -> None:
    df = exercises_to_dataframe([])

    assert df.empty
    assert list(df.columns) == EXERCISE_COLUMNS


def test_weekly_minutes_by_type_uses_iso_weeks() -> None:
    weekly = weekly_minutes_by_type(exercises_to_dataframe(_sessions()))

    assert list(weekly.index) == ["2024-W19", "2024-W20"]
    assert weekly.loc["2024-W19", "Canasto"] == pytest.approx(15.0)
    assert weekly.loc["2024-W19", "Peloteo"] == pytest.approx(30.0)
    assert weekly.loc["2024-W20", "Peloteo"] == pytest.approx(0.0)


def test_intensity_by_date_ignores_missing_values() -> None:
    daily = intensity_by_date(exercises_to_dataframe(_sessions()))

    assert len(daily) == 1
    assert daily.loc[0, "date"] == pd.Timestamp("2024-05-06")
    assert daily.loc[0, "intensidad_media"] == pytest.approx(7.0)
    assert daily.loc[0, "exercises"] == 2


def test_export_exercises_csv_writes_rows(tmp_path) -> None:
    target = tmp_path / "out" / "exercises.csv"

    rows = export_exercises_csv(_sessions(), target)

    assert rows == 4
    exported = pd.read_csv(target)
    assert exported["date"].tolist()[0] == "2024-05-06"
    assert exported["jugador_id"].unique().tolist() == ["ana"]
