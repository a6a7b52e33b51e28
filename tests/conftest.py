"""Shared test fixtures."""

import json

import pytest

from schemas import AnalysisResult, ImageHandle
from tests.helpers import PNG_BYTES, analysis_payload


@pytest.fixture
def analysis():
    return AnalysisResult.model_validate(analysis_payload())


@pytest.fixture
def image():
    return ImageHandle.from_png(PNG_BYTES)


@pytest.fixture
def json_text():
    return json.dumps(analysis_payload())
