# type: ignore
import os

from invoke import task


@task
def venv(ctx):
    """Create .venv with btctl and its test/dev extras installed."""
    ctx.run("uv sync --all-extras")


@task
def lint(ctx):
    """Ruff (lint + format check) and mypy over the package and tests."""
    ctx.run("ruff check src tests", pty=True)
    ctx.run("ruff format --check src tests", pty=True)
    ctx.run("mypy src", pty=True)


@task
def fmt(ctx):
    """Apply ruff fixes and formatting in place."""
    ctx.run("ruff check --fix src tests", pty=True)
    ctx.run("ruff format src tests", pty=True)


@task(help={"k": "Only run tests matching this expression"})
def test(ctx, k=None):
    """Run the test suite with coverage for btctl."""
    selector = f" -k {k!r}" if k else ""
    ctx.run(f"pytest --cov=btctl --cov-report=term-missing{selector}", pty=True)


@task
def smoke(ctx):
    """Talk to the local adapter: status, then a short scan (needs BlueZ)."""
    ctx.run("btctl status", pty=True)
    ctx.run("btctl scan --duration 3 --all", pty=True)


@task
def build_package(ctx):
    """Build sdist and wheel into dist/."""
    ctx.run("rm -rf dist")
    ctx.run("uv build")


@task(pre=[lint, test, build_package])
def release(ctx):
    """Lint, test, build and publish to PyPI."""
    token = os.getenv("PYPI_TOKEN")
    if not token:
        raise ValueError("PYPI_TOKEN environment variable is not set")
    ctx.run(f"uv publish --token {token}")
