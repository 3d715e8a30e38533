#!/usr/bin/env python3
"""Time the forward and inverse salary calculations on sample inputs."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from time import perf_counter
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from bruttonetto.backend.app.models import CalculatorInput  # noqa: E402
from bruttonetto.backend.app.services.calculation_service import (  # noqa: E402
    calculate_salary,
    search_gross_for_net,
)

SAMPLES = {
    "gross_to_net": CalculatorInput(
        income=4200,
        has_children=True,
        children_under_18=2,
        is_single_earner=True,
        family_bonus="full",
        receives_commuter_allowance=True,
        commuter_allowance_monthly=58,
    ),
    "net_to_gross": CalculatorInput(income=2800, calculation_mode="net-to-gross"),
}


def measure(payload: CalculatorInput, iterations: int) -> dict[str, float]:
    """Return timing statistics for repeated calculations of ``payload``."""

    calculate_salary(payload)  # Warm the configuration cache
    start = perf_counter()
    for _ in range(iterations):
        calculate_salary(payload)
    elapsed = perf_counter() - start
    return {
        "iterations": iterations,
        "total_ms": elapsed * 1000,
        "average_ms": (elapsed / iterations) * 1000,
    }


def search_profile() -> dict[str, Any]:
    """Report how many bisection steps the sample net target needs."""

    outcome = search_gross_for_net(SAMPLES["net_to_gross"])
    return {
        "iterations": outcome.iterations,
        "converged": outcome.converged,
        "difference": outcome.difference,
        "gross_monthly": outcome.result.gross_monthly,
    }


def main() -> None:
    iterations = int(os.getenv("BRUTTONETTO_PROFILE_ITERATIONS", "200"))
    report = {
        "timings": {name: measure(payload, iterations) for name, payload in SAMPLES.items()},
        "search": search_profile(),
    }
    print(json.dumps(report, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
