import pytest

from overnote import config


@pytest.fixture(autouse=True)
def isolated_overnote_dir(tmp_path, monkeypatch):
    """Point every test at a throwaway ~/.overnote and fresh settings."""
    monkeypatch.setenv("OVERNOTE_DIR", str(tmp_path / ".overnote"))
    monkeypatch.delenv("OVERNOTE_BACKEND_URL", raising=False)
    monkeypatch.delenv("OVERNOTE_POLL_INTERVAL_MS", raising=False)
    config.reload()

    yield tmp_path / ".overnote"

    monkeypatch.undo()
    config.reload()
