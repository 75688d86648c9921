"""
Pytest configuration and fixtures for all tests.

Every test talks to the in-package mock gateway; nothing reaches the network.
"""

import pytest

from prompt_optimizer import (
    ArtSettings,
    IndustryGlossary,
    MockCompletionGateway,
    OptimizationPipeline,
    OptimizationSettings,
    TargetGenerator,
)


@pytest.fixture
def gateway() -> MockCompletionGateway:
    """Fresh mock gateway with an empty response queue."""
    return MockCompletionGateway()


@pytest.fixture
def pipeline(gateway: MockCompletionGateway) -> OptimizationPipeline:
    return OptimizationPipeline(gateway)


@pytest.fixture
def default_settings() -> OptimizationSettings:
    return OptimizationSettings.defaults()


@pytest.fixture
def midjourney_settings() -> OptimizationSettings:
    """Art profile targeting Midjourney with parameter auto-append on."""
    return OptimizationSettings.defaults(
        industry_glossary=IndustryGlossary.ART,
        art=ArtSettings(target_generator=TargetGenerator.MIDJOURNEY, auto_append_parameters=True),
    )
