"""Hypothesis settings profiles for the txtar parser property tests.

The "dev" profile keeps local runs short; "ci" runs more examples.
"""
from __future__ import annotations

import os

from hypothesis import HealthCheck, settings

settings.register_profile(
    "dev",
    settings(
        max_examples=50,
        deadline=None,
        suppress_health_check=(HealthCheck.too_slow, HealthCheck.filter_too_much),
    ),
)
settings.register_profile(
    "ci",
    settings(
        max_examples=200,
        deadline=None,
        suppress_health_check=(HealthCheck.too_slow, HealthCheck.filter_too_much),
    ),
)

profile = os.getenv("HYPOTHESIS_PROFILE")
if profile:
    settings.load_profile(profile)
elif os.getenv("CI"):
    settings.load_profile("ci")
else:
    settings.load_profile("dev")
