"""Unit tests for the error taxonomy and the shared error envelope."""

import importlib.util
import warnings

import pytest
from libs.common import error_handler
from services.order_service import errors
from services.order_service.errors import (
    InsufficientStockError,
    StockChangedError,
    ValidationError,
)


def _exec_module_fresh(module):
    """Execute a module's source again under a private name."""
    found = importlib.util.spec_from_file_location(
        f"_fresh_{module.__name__.replace('.', '_')}", module.__file__
    )
    fresh = importlib.util.module_from_spec(found)
    found.loader.exec_module(fresh)
    return fresh


@pytest.mark.unit
@pytest.mark.parametrize("module", [errors, error_handler])
def test_modules_import_without_deprecation_warnings(module):
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        _exec_module_fresh(module)


@pytest.mark.unit
def test_validation_error_is_unprocessable():
    assert ValidationError("bad").status_code == 422
    assert ValidationError("bad").to_dict()["code"] == "VALIDATION_FAILED"


@pytest.mark.unit
def test_stock_changed_is_a_retryable_insufficient_stock():
    error = StockChangedError("p-1", requested=2)

    assert isinstance(error, InsufficientStockError)
    assert error.retryable is True
    assert error.status_code == 409
    assert error.to_dict()["details"] == {"product_id": "p-1", "requested": 2}
