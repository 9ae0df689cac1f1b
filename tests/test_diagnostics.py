# tests/test_diagnostics.py
from __future__ import annotations

from skyring.core.diagnostics import merge_diagnostics
from skyring.core.models import SkyFactorDiagnostics, SkyFactorSummary

from _builders import live_diagnostics


def test_override_replaces_summary_and_appends_note():
    upstream = SkyFactorDiagnostics(
        factors={"humidity": SkyFactorSummary(0.4, "live", 0.85, ("station 12",))},
        provider_quality="live",
        degraded=False,
    )
    merged = merge_diagnostics(upstream, {"humidity": 1.7}, False)
    h = merged.factors["humidity"]
    assert h.value == 1.0
    assert h.source == "override"
    assert h.confidence == 1.0
    assert h.notes == ("station 12", "manual override")


def test_override_of_unreported_factor_is_added():
    merged = merge_diagnostics(live_diagnostics(), {"ozone_factor": -3}, False)
    assert merged.factors["ozone_factor"].value == 0.0
    assert merged.factors["ozone_factor"].notes == ("manual override",)


def test_none_overrides_are_ignored():
    upstream = live_diagnostics()
    merged = merge_diagnostics(upstream, {"humidity": None}, False)
    assert merged.factors["humidity"] == upstream.factors["humidity"]


def test_polar_flag_degrades_and_records_reason():
    upstream = live_diagnostics()
    merged = merge_diagnostics(upstream, None, True)
    assert merged.degraded is True
    assert merged.polar_condition_imputed is True
    assert merged.fallback_reasons == ("polar_conditions_imputed_events",)
    assert merged.provider_quality == "live"
    assert merged.interpolation == "hourly_linear"


def test_upstream_is_not_mutated():
    upstream = SkyFactorDiagnostics(
        factors=dict(live_diagnostics().factors),
        provider_quality="mixed",
        degraded=True,
        fallback_reasons=("weather_provider_unavailable",),
        interpolation="none",
    )
    before = upstream.to_dict()
    merged = merge_diagnostics(upstream, {"cloud_fraction": 0.9}, True)
    assert upstream.to_dict() == before
    assert merged.fallback_reasons == ("weather_provider_unavailable", "polar_conditions_imputed_events")
    assert merged.interpolation == "hourly_linear"
    assert merged.degraded is True


def test_to_dict_is_camel_case():
    d = merge_diagnostics(live_diagnostics(), {"altitude": 0.3}, False).to_dict()
    assert set(d) == {
        "factors", "providerQuality", "degraded",
        "fallbackReasons", "interpolation", "polarConditionImputed",
    }
    assert d["factors"]["altitude"] == {
        "value": 0.3, "source": "override", "confidence": 1.0, "notes": ["manual override"],
    }


def test_list_notes_are_stored_as_tuple_and_extended():
    summary = SkyFactorSummary(0.4, "live", 0.85, ["station 12"])
    assert summary.notes == ("station 12",)
    upstream = SkyFactorDiagnostics(
        factors={"humidity": summary}, provider_quality="live", degraded=False,
    )
    merged = merge_diagnostics(upstream, {"humidity": 0.7}, False)
    assert merged.factors["humidity"].notes == ("station 12", "manual override")
