"""Test fixtures and utilities."""

import pytest

from fixtures import get_local_invoice, get_multipage_invoice
from invoice_fsm.classifier import LineClassifier
from invoice_fsm.machine import StateMachineDriver


@pytest.fixture
def sample_invoice_local() -> str:
    """Local-currency invoice text."""
    return get_local_invoice()


@pytest.fixture
def sample_invoice_multipage() -> str:
    """Two-page German invoice with a foreign entry."""
    return get_multipage_invoice()


@pytest.fixture
def classifier() -> LineClassifier:
    return LineClassifier()


@pytest.fixture
def driver() -> StateMachineDriver:
    return StateMachineDriver()
