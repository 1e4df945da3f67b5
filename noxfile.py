"""Nox sessions orchestrating eventlog unit suites."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import nox


PYTHON_VERSIONS = ["3.11"]
PROJECT_ROOT = Path(__file__).parent

nox.options.sessions = [
    "tests(unit_eventlog)",
]


def _install_test_requirements(session: nox.Session) -> None:
    """Install the package and the core testing toolchain inside the session."""

    session.install("-e", ".[test]")


def _normalize_pythonpath(existing: str | None) -> str:
    parts = [str(PROJECT_ROOT)]
    if existing:
        parts.append(existing)
    return ":".join(part for part in parts if part)


def _build_env(session: nox.Session) -> dict[str, str]:
    env = dict(session.env)
    env["PYTHONPATH"] = _normalize_pythonpath(env.get("PYTHONPATH"))
    return env


def _run_suite(session: nox.Session, suite: str, targets: Iterable[str]) -> None:
    _install_test_requirements(session)

    env = _build_env(session)
    args = ["coverage", "run", f"--context={suite}", "-m", "pytest", *targets, *session.posargs]

    session.log("Running %s suite: %s", suite, " ".join(args))
    session.run(*args, env=env)
    session.run("coverage", "report", "-m", env=env)


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True, name="tests(unit_eventlog)")
def tests_unit_eventlog(session: nox.Session) -> None:
    """Execute event logger unit suites under coverage."""

    _run_suite(session, "eventlog", ["tests/unit/eventlog"])


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True, name="tests(unit_eventlog_gcl)")
def tests_unit_eventlog_gcl(session: nox.Session) -> None:
    """Execute the suites with the optional Cloud Logging dependency installed."""

    session.install("-e", ".[gcl]")
    _run_suite(session, "eventlog-gcl", ["tests/unit/eventlog"])
