"""Threshold-to-text advisories derived from humidity and wind."""

from __future__ import annotations

DISEASE_RISK_LEVELS = ("low", "moderate", "high")


def disease_risk(humidity: float) -> str:
    """Fungal disease risk: ``'high'`` above 80 %, ``'moderate'`` from 60 %."""
    if humidity > 80:
        return "high"
    if humidity >= 60:
        return "moderate"
    return "low"


def irrigation_recommendation(humidity: float, wind_speed: float) -> str:
    if humidity > 80:
        return "Reduce irrigation; high humidity reduces evaporation."
    if wind_speed > 5:
        return "Increase irrigation; high wind increases evaporation."
    return "Maintain normal irrigation."


def fertilizer_recommendation(wind_speed: float) -> str:
    if wind_speed > 8:
        return "Delay fertilizer application; high wind causes drift."
    if wind_speed > 5:
        return (
            "Apply fertilizer with caution; moderate wind may cause some "
            "drift."
        )
    return "Apply fertilizer as planned."


def disease_prevention_recommendation(humidity: float) -> str:
    risk = disease_risk(humidity)
    if risk == "high":
        return (
            "High risk of fungal disease: Use fungicides/preventive measures."
        )
    if risk == "moderate":
        return "Monitor for disease; moderate risk."
    return "Low disease risk; standard monitoring."
