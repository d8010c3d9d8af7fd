"""Summary statistics over an analyzed river collection."""

from __future__ import annotations

from .models import AnalysisStatistics, RiskCategory

_CATEGORY_COUNTERS = {
    RiskCategory.HIGH_EROSION.value: "high_erosion",
    RiskCategory.MEDIUM_EROSION.value: "medium_erosion",
    RiskCategory.STABLE.value: "stable",
    RiskCategory.MEDIUM_DEPOSITION.value: "medium_deposition",
    RiskCategory.HIGH_DEPOSITION.value: "high_deposition",
}


def get_analysis_statistics(river: dict | None) -> AnalysisStatistics | None:
    """Count segments per risk category and aggregate their risk index, velocity and shear stress.

    Only features carrying a ``calculated`` block are considered. Returns
    ``None`` when ``river`` has no features list.
    """
    if not isinstance(river, dict) or not isinstance(river.get("features"), list):
        return None

    stats = AnalysisStatistics()
    total_risk_index = 0.0
    total_velocity = 0.0
    total_shear_stress = 0.0

    for feature in river["features"]:
        calc = (feature.get("properties") or {}).get("calculated")
        if not calc:
            continue

        stats.total_segments += 1
        counter = _CATEGORY_COUNTERS.get(calc.get("riskCategory"))
        if counter is not None:
            setattr(stats, counter, getattr(stats, counter) + 1)

        total_risk_index += calc["riskIndex"]
        total_velocity += calc["velocity"]
        total_shear_stress += calc["shearStress"]
        stats.max_risk_index = max(stats.max_risk_index, calc["riskIndex"])
        stats.min_risk_index = min(stats.min_risk_index, calc["riskIndex"])

    if stats.total_segments > 0:
        stats.avg_risk_index = round(total_risk_index / stats.total_segments, 2)
        stats.avg_velocity = round(total_velocity / stats.total_segments, 2)
        stats.avg_shear_stress = round(total_shear_stress / stats.total_segments, 2)

    return stats
