import pytest

from pesde.engine import EngineKind, EngineKindError


def test_parse_known_names():
    assert EngineKind.parse("pesde") is EngineKind.PESDE
    assert EngineKind.parse("lune") is EngineKind.LUNE


def test_parse_is_case_insensitive():
    assert EngineKind.parse("LUNE") is EngineKind.LUNE
    assert EngineKind.parse("PeSdE") is EngineKind.PESDE


def test_display():
    assert str(EngineKind.parse("PESDE")) == "pesde"
    assert str(EngineKind.parse("Lune")) == "lune"


@pytest.mark.parametrize("kind", list(EngineKind))
def test_round_trip(kind):
    assert EngineKind.parse(str(kind)) is kind


def test_unknown_engine():
    with pytest.raises(EngineKindError, match="unknown engine kind node"):
        EngineKind.parse("node")


def test_error_is_value_error():
    with pytest.raises(ValueError):
        EngineKind.parse("")