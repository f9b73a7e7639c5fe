from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from adapters.layout.railroad import LayoutConfig, RailroadLayoutEngine
from app.config import AppSettings, LayoutSettings, MeasureSettings
from tests.helpers.measurers import FixedMeasurer


def _clear_trailer_env() -> None:
    for key in list(os.environ):
        if key.startswith("TRAILER_"):
            os.environ.pop(key, None)


_clear_trailer_env()


@pytest.fixture(autouse=True)
def clear_trailer_env() -> Generator[None, None, None]:
    _clear_trailer_env()
    yield
    _clear_trailer_env()


@pytest.fixture
def measurer() -> FixedMeasurer:
    return FixedMeasurer()


@pytest.fixture
def layout_engine(measurer: FixedMeasurer) -> RailroadLayoutEngine:
    return RailroadLayoutEngine(measurer, LayoutConfig())


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(layout=LayoutSettings(), measure=MeasureSettings())


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return app_settings.model_copy(update=overrides)

    return _factory
