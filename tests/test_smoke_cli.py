from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from academy_tracker.cli import app

VALID_PLAN = {
    "Canasto": {
        "porcentajeTotal": 50,
        "areas": {"Juego de red": {"porcentajeDelTotal": 50, "ejercicios": {"Voleas": {"porcentajeDelTotal": 50}}}},
    },
    "Peloteo": {"porcentajeTotal": 50, "areas": {"Puntos": {"porcentajeDelTotal": 50}}},
}


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("ACADEMY_TRACKER_DATA_DIR", str(tmp_path / "data"))
    return CliRunner()


def test_cli_smoke(runner, tmp_path):
    log_result = runner.invoke(
        app,
        [
            "log-session",
            "--academia",
            "club",
            "--player",
            "ana",
            "--coach",
            "marta",
            "--exercise",
            "Canasto|Juego de red|Voleas|30m|7",
            "--exercise",
            "Peloteo|Puntos|Puntos libres|10m",
            "--notes",
            "smoke",
        ],
    )
    assert log_result.exit_code == 0, log_result.output
    assert "for ana" in log_result.stdout

    invalid_plan = tmp_path / "invalid_plan.json"
    invalid_plan.write_text(json.dumps({"Canasto": {"porcentajeTotal": 70}}), encoding="utf-8")
    validate_result = runner.invoke(app, ["plan", "validate", "--file", str(invalid_plan)])
    assert validate_result.exit_code == 1

    rejected = runner.invoke(app, ["plan", "set", "-a", "club", "-p", "ana", "--file", str(invalid_plan)])
    assert rejected.exit_code == 1

    plan_file = tmp_path / "plan.json"
    plan_file.write_text(json.dumps(VALID_PLAN), encoding="utf-8")
    set_result = runner.invoke(app, ["plan", "set", "-a", "club", "-p", "ana", "--file", str(plan_file), "--window", "14"])
    assert set_result.exit_code == 0, set_result.output

    show_result = runner.invoke(app, ["plan", "show", "-a", "club", "-p", "ana"])
    assert show_result.exit_code == 0, show_result.output
    assert json.loads(show_result.stdout)["rangoAnalisis"] == 14

    json_result = runner.invoke(app, ["analyze", "-a", "club", "-p", "ana", "--json"])
    assert json_result.exit_code == 0, json_result.output
    payload = json.loads(json_result.stdout)
    assert payload["hasPlan"] is True
    assert payload["totalSessions"] == 1
    assert payload["windowDays"] == 14
    assert payload["tree"][0]["realizado"] == pytest.approx(75.0)
    assert payload["tree"][1]["children"][0]["esDistribucionLibre"] is True

    plain_result = runner.invoke(app, ["analyze", "-a", "club", "-p", "ana", "--plain"])
    assert plain_result.exit_code == 0, plain_result.output
    assert "CATEGORY" in plain_result.stdout

    tree_result = runner.invoke(app, ["analyze", "-a", "club", "-p", "ana"])
    assert tree_result.exit_code == 0, tree_result.output
    assert "Voleas" in tree_result.stdout

    recommend_result = runner.invoke(app, ["recommend", "-a", "club", "--player", "ana"])
    assert recommend_result.exit_code == 0, recommend_result.output
    assert "ana:" in recommend_result.stdout

    export_path = tmp_path / "export" / "exercises.csv"
    export_result = runner.invoke(app, ["export", "-a", "club", "--to", str(export_path)])
    assert export_result.exit_code == 0, export_result.output
    assert export_path.exists()

    report_dir = tmp_path / "reports"
    report_result = runner.invoke(app, ["report", "-a", "club", "-p", "ana", "--output-dir", str(report_dir)])
    assert report_result.exit_code == 0, report_result.output
    assert list(report_dir.glob("*.pdf"))


def test_cli_missing_plan_is_not_a_failure(runner):
    runner.invoke(app, ["log-session", "-a", "club", "-p", "leo", "-e", "Canasto|Juego de red|Voleas|10"])

    result = runner.invoke(app, ["analyze", "-a", "club", "-p", "leo"])

    assert result.exit_code == 0
    assert "No training plan found for this player" in result.stdout


def test_cli_rejects_malformed_exercise(runner):
    result = runner.invoke(app, ["log-session", "-a", "club", "-p", "ana", "-e", "Canasto|Voleas"])

    assert result.exit_code != 0


def test_cli_tournaments_and_migrations(runner):
    add_result = runner.invoke(
        app,
        [
            "tournament",
            "add",
            "-a",
            "club",
            "-p",
            "ana",
            "--name",
            "Open de primavera",
            "--start",
            "2024-04-12",
            "--result",
            "Semifinal",
            "--level",
            "4",
            "--evaluation",
            "Bueno",
        ],
    )
    assert add_result.exit_code == 0, add_result.output

    list_result = runner.invoke(app, ["tournament", "list", "-a", "club", "--player", "ana"])
    assert list_result.exit_code == 0, list_result.output
    assert "Open de primavera" in list_result.stdout

    migrate_result = runner.invoke(app, ["migrate", "-a", "club", "--dry-run"])
    assert migrate_result.exit_code == 0, migrate_result.output
    assert "Would migrate 0 sessions" in migrate_result.stdout

    config_result = runner.invoke(app, ["config"])
    assert config_result.exit_code == 0
    assert "Recommendation thresholds" in config_result.stdout


def test_cli_plan_delete_reports_store_errors(runner, tmp_path):
    invalid = runner.invoke(app, ["plan", "delete", "-a", "../x", "-p", "ana"])
    assert invalid.exit_code == 1
    assert isinstance(invalid.exception, SystemExit)

    plans_file = tmp_path / "data" / "academias" / "club" / "training_plans.json"
    plans_file.parent.mkdir(parents=True)
    plans_file.write_text("{broken", encoding="utf-8")

    corrupt = runner.invoke(app, ["plan", "delete", "-a", "club", "-p", "ana"])
    assert corrupt.exit_code == 1
    assert isinstance(corrupt.exception, SystemExit)

    missing = runner.invoke(app, ["plan", "delete", "-a", "other", "-p", "ana"])
    assert missing.exit_code == 1


def test_cli_surveys(runner):
    log_result = runner.invoke(
        app,
        ["log-session", "-a", "club", "-p", "ana", "-d", "2024-05-01", "-e", "Canasto|Juego de red|Voleas|20m"],
    )
    assert log_result.exit_code == 0, log_result.output
    session_id = log_result.stdout.split()[2]

    add_result = runner.invoke(app, ["survey", "add", "-a", "club", "-s", session_id, "--fatigue", "4", "--focus", "3"])
    assert add_result.exit_code == 0, add_result.output

    duplicate = runner.invoke(app, ["survey", "add", "-a", "club", "-s", session_id, "--feel", "5"])
    assert duplicate.exit_code == 1

    list_result = runner.invoke(app, ["survey", "list", "-a", "club", "-p", "ana"])
    assert list_result.exit_code == 0, list_result.output
    assert "2024-05-01" in list_result.stdout
    assert "fatigue 4" in list_result.stdout

    orphan = runner.invoke(app, ["survey", "add", "-a", "club", "-s", "unknown", "--focus", "2"])
    assert orphan.exit_code != 0


def test_cli_objectives(runner):
    add_result = runner.invoke(app, ["objective", "add", "-a", "club", "-p", "ana", "--text", "Mejorar el saque"])
    assert add_result.exit_code == 0, add_result.output
    objective_id = add_result.stdout.split()[2]

    update_result = runner.invoke(app, ["objective", "update", objective_id, "-a", "club", "--status", "consolidacion"])
    assert update_result.exit_code == 0, update_result.output

    list_result = runner.invoke(app, ["objective", "list", "-a", "club", "-p", "ana"])
    assert "[consolidacion]" in list_result.stdout
    assert "Mejorar el saque" in list_result.stdout

    delete_result = runner.invoke(app, ["objective", "delete", objective_id, "-a", "club"])
    assert delete_result.exit_code == 0, delete_result.output

    gone = runner.invoke(app, ["objective", "delete", objective_id, "-a", "club"])
    assert gone.exit_code == 1
