import nox

PYTHONS = ["3.10", "3.11", "3.12"]
SOURCES = ["src", "tests", "noxfile.py"]

nox.options.sessions = ["lint", "type_check", "tests"]


@nox.session(python=PYTHONS)
def tests(session: nox.Session) -> None:
    """pytest with branch coverage for the hr_criteria package."""
    session.install("-e", ".[dev]")
    session.run(
        "pytest",
        "--cov=hr_criteria",
        "--cov-branch",
        "--cov-report=term-missing",
        *session.posargs,
    )


@nox.session(python=PYTHONS[-1])
def sql(session: nox.Session) -> None:
    """Only the SQLAlchemy backend and the HR repositories."""
    session.install("-e", ".[dev]")
    session.run(
        "pytest", "tests/test_sqlalchemy.py", "tests/test_hr_repositories.py"
    )


@nox.session(python=PYTHONS[-1])
def lint(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", *SOURCES)
    session.run("ruff", "format", "--check", *SOURCES)


@nox.session(python=PYTHONS[-1], name="format")
def format_(session: nox.Session) -> None:
    """Apply ruff fixes and formatting in place."""
    session.install("ruff")
    session.run("ruff", "check", "--fix", *SOURCES)
    session.run("ruff", "format", *SOURCES)


@nox.session(python=PYTHONS)
def type_check(session: nox.Session) -> None:
    session.install("-e", ".[dev]")
    session.run("mypy", "src/hr_criteria")


@nox.session(python=PYTHONS[-1])
def arch_check(session: nox.Session) -> None:
    """Import boundaries between core, SQL backend and HR domain."""
    session.install("-e", ".[dev]")
    session.run("pytest", "tests/architecture", *session.posargs)
