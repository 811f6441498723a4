"""Automation sessions for tests, linting, type-checking and security scanning.

These sessions use Nox to create reproducible virtual environments and run
pytest, Ruff (lint/format), MyPy (type checks) and Bandit (security).
"""

import nox

# Global options
nox.options.sessions = ("tests", "ruff", "mypy", "bandit")
nox.options.reuse_existing_virtualenvs = True
nox.options.default_venv_backend = "uv|virtualenv"

SILENT_DEFAULT = True
SILENT_CODE_MODIFIERS = False

# Targets
PACKAGE_LOCATION = "."
SOURCE_LOCATION = "tie_lp"
PYTHON_VERSIONS = ["3.12", "3.13"]


@nox.session(python=PYTHON_VERSIONS, tags=["test"])
def tests(session: nox.Session) -> None:
    """Run the pytest suite against an editable install."""
    _install(session, "-e", ".[test]")
    _run(session, "pytest", *session.posargs, silent=False)


@nox.session(python=PYTHON_VERSIONS, tags=["lint", "format"])
def ruff(session: nox.Session) -> None:
    """Run Ruff to lint the codebase and apply formatting."""
    args = session.posargs or (PACKAGE_LOCATION,)
    _install(session, "ruff==0.12.7")
    _run(session, "ruff", "check", *args)
    _run_code_modifier(session, "ruff", "format", *args)


@nox.session(python=PYTHON_VERSIONS, tags=["typecheck"])
def mypy(session: nox.Session) -> None:
    """Verify static types using MyPy."""
    args = session.posargs or (SOURCE_LOCATION,)
    # Install the project with all dependencies so mypy can find type information
    _install(session, PACKAGE_LOCATION)
    _install(session, "mypy", "pandas-stubs", "types-PyYAML")
    _run(session, "mypy", "--ignore-missing-imports", *args)


@nox.session(python=PYTHON_VERSIONS, tags=["security"])
def bandit(session: nox.Session) -> None:
    """Scan the package for common security issues using Bandit."""
    args = session.posargs or (SOURCE_LOCATION,)
    _install(session, "bandit")
    _run(session, "bandit", "-r", *args)


def _install(session: nox.Session, *args: str) -> None:
    """Install pip packages into the active Nox session."""
    if args:
        session.install(*args)


def _run(
    session: nox.Session,
    target: str,
    *args: str,
    silent: bool = SILENT_DEFAULT,
) -> None:
    """Run a command within the Nox session with standard options."""
    session.run(target, *args, external=True, silent=silent)


def _run_code_modifier(session: nox.Session, target: str, *args: str) -> None:
    """Run a code-modifying command with a less silent default."""
    _run(session, target, *args, silent=SILENT_CODE_MODIFIERS)
