"""
Fixtures globais: isolam os testes das variáveis PRODPLAN_* do ambiente.
"""
import os

import pytest

from prodplan.settings import Settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Settings por defeito em cada teste."""
    for name in list(os.environ):
        if name.startswith("PRODPLAN_"):
            monkeypatch.delenv(name, raising=False)
    Settings.reset()
    yield
    Settings.reset()
