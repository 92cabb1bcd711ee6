import pytest
from unittest.mock import MagicMock

from utils.error_handling import handle_engine_errors
from utils.exceptions import ExpressionMLException, EmptyGrid, PredictionError

class DummyEngine:
    def __init__(self):
        self.logger = MagicMock()

    @handle_engine_errors("Dummy Step")
    def fail_with(self, exc):
        raise exc

    @handle_engine_errors("Scoring", wrap_as=PredictionError)
    def score(self, exc):
        raise exc

def test_custom_exceptions_pass_through():
    with pytest.raises(EmptyGrid):
        DummyEngine().fail_with(EmptyGrid("nothing"))
    with pytest.raises(EmptyGrid):
        DummyEngine().score(EmptyGrid("nothing"))

def test_unexpected_errors_are_wrapped_and_logged():
    engine = DummyEngine()
    with pytest.raises(ExpressionMLException, match="Dummy Step failed: bad value") as excinfo:
        engine.fail_with(ValueError("bad value"))
    assert isinstance(excinfo.value.__cause__, ValueError)
    engine.logger.error.assert_called_once()
    assert "DummyEngine" in engine.logger.error.call_args[0][0]

def test_wrap_as_selects_exception_type():
    engine = DummyEngine()
    with pytest.raises(PredictionError, match="Scoring failed: shape mismatch") as excinfo:
        engine.score(RuntimeError("shape mismatch"))
    assert isinstance(excinfo.value.__cause__, RuntimeError)

def test_return_value_passes_through():
    class Engine:
        logger = MagicMock()

        @handle_engine_errors("Echo")
        def echo(self, value):
            return value

    assert Engine().echo(42) == 42
