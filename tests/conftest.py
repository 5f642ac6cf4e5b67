"""Pytest fixtures for the upload panel tests."""

import sys

import pytest

from upload_panel import Config, create_app


def python_command(code: str) -> tuple:
    """Argument vector running a snippet with the current interpreter."""
    return (sys.executable, "-c", code)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def config(tmp_path, upload_dir):
    return Config(
        upload_dir=str(upload_dir),
        upload_limit_mb=1,
        commands={
            "update": python_command("print('cpu info')"),
            "backup_app": python_command("import sys; print('partial'); sys.stdout.flush(); sys.exit(3)"),
            "restore_app": python_command("import sys; sys.stderr.write('to stderr\\n')"),
            "backup_db": (str(tmp_path / "missing-binary"),),
        },
        command_timeout=5,
        static_dir=str(tmp_path / "static"),
        index_file=str(tmp_path / "index.html"),
    )


@pytest.fixture
def app(config):
    app = create_app(config, test_config={"TESTING": True})
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
