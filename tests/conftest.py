import pytest

from saju import settings, solar_terms


@pytest.fixture(autouse=True)
def generated_solar_terms(monkeypatch):
    """Run every test against the runtime-generated table."""
    monkeypatch.setattr(settings, "SOLAR_TERMS_PATH", None)
    solar_terms.clear_cache()
    yield
    solar_terms.clear_cache()
