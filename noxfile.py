import nox


@nox.session
def format(session):
    # run linters
    session.install("ruff")
    session.run("ruff", "check", "--fix", "src", "tests")
    session.run("ruff", "format", "src", "tests")


@nox.session
def lint(session):
    # run linters
    session.install("ruff")
    session.run("ruff", "check", "src", "tests")
    session.run("ruff", "format", "--check", "src", "tests")


@nox.session(name="tests", python=["3.10", "3.11", "3.12"])
def tests(session):
    session.install(".[dev]")
    session.run("pytest", "tests")


@nox.session(name="doctests", python=["3.10", "3.11", "3.12"])
def doctests(session):
    session.install(".[dev]")
    session.run("pytest", "--doctest-modules", "--doctest-continue-on-failure", "src/")
