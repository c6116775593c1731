from __future__ import annotations

DEFAULT_EXERCISE_LABEL = "Sin nombre"
DEFAULT_ANALYSIS_WINDOW_DAYS = 30

# Known training structure: tipo -> area -> drills.
TRAINING_STRUCTURE: dict[str, dict[str, tuple[str, ...]]] = {
    "Canasto": {
        "Juego de base": ("Estático", "Dinámico"),
        "Juego de red": ("Voleas", "Subidas", "Smash"),
        "Primeras pelotas": ("Saque", "Devolución", "Saque + 1", "Devolución + 1"),
    },
    "Peloteo": {
        "Juego de base": ("Control", "Movilidad", "Jugadas"),
        "Juego de red": ("Voleas", "Subidas", "Smash"),
        "Primeras pelotas": ("Saque", "Devolución", "Saque + 1", "Devolución + 1"),
        "Puntos": ("Puntos libres", "Puntos con pautas"),
    },
}

TRAINING_TYPES: tuple[str, ...] = tuple(TRAINING_STRUCTURE)

LEGACY_AREA_RENAMES: dict[str, str] = {"Fondo": "Juego de base"}


def even_split(keys: tuple[str, ...] | list[str]) -> dict[str, int]:
    """Split 100% evenly across ``keys``, handing the remainder to the first entries."""
    if not keys:
        return {}
    share, remainder = divmod(100, len(keys))
    return {key: share + (1 if index < remainder else 0) for index, key in enumerate(keys)}


def default_type_percentages() -> dict[str, int]:
    return even_split(TRAINING_TYPES)


def default_area_percentages() -> dict[str, dict[str, int]]:
    """Default share of each area *within* its tipo."""
    return {tipo: even_split(tuple(areas)) for tipo, areas in TRAINING_STRUCTURE.items()}
