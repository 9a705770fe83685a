import math

import pytest

from astralneo.core.impact import (
    COMPARISON_BANDS,
    ImpactParameters,
    ImpactValidationError,
    comparison_label,
    simulate,
)


def test_reference_impact():
    r = simulate(ImpactParameters(diameter_km=10.0, velocity_km_s=20.0, density_kg_m3=3000.0, impact_angle_deg=45.0))

    assert r.energy_joules == pytest.approx(math.pi * 1e23, rel=1e-9)
    assert r.energy_megatons == pytest.approx(7.508e7, rel=1e-3)
    assert r.comparison_label == "small extinction event"
    assert r.quake_magnitude == 10.0
    assert r.ejecta_height_km == 100.0
    assert 300.0 < r.crater_diameter_km < 500.0
    assert r.fireball_radius_km == pytest.approx(1.2 * r.energy_megatons ** 0.4)


def test_tiny_impact_stays_uncapped():
    r = simulate(ImpactParameters(diameter_km=0.01, velocity_km_s=1.0, density_kg_m3=1000.0, impact_angle_deg=90.0))

    assert r.energy_megatons < 0.001
    assert r.comparison_label == "large conventional bomb"
    assert r.quake_magnitude == pytest.approx(0.67 * math.log10(r.energy_megatons) + 5.87)
    assert r.ejecta_height_km == pytest.approx(r.crater_diameter_km * 2.5)


def test_largest_impact_is_finite_and_capped():
    r = simulate(ImpactParameters(diameter_km=100.0, velocity_km_s=72.0, density_kg_m3=8000.0, impact_angle_deg=90.0))

    for v in (r.energy_joules, r.energy_megatons, r.crater_diameter_km, r.fireball_radius_km):
        assert math.isfinite(v)
    assert r.quake_magnitude == 10.0
    assert r.ejecta_height_km == 100.0
    assert r.comparison_label == "planet-shattering cataclysm"


def test_steeper_angle_digs_wider_crater():
    shallow = simulate(ImpactParameters(1.0, 20.0, impact_angle_deg=15.0))
    steep = simulate(ImpactParameters(1.0, 20.0, impact_angle_deg=90.0))
    assert steep.crater_diameter_km > shallow.crater_diameter_km
    assert steep.energy_joules == shallow.energy_joules


@pytest.mark.parametrize(
    "raw, field",
    [
        ({"diameter_km": 0.001, "velocity_km_s": 20}, "diameter_km"),
        ({"diameter_km": 1, "velocity_km_s": 80}, "velocity_km_s"),
        ({"diameter_km": 1, "velocity_km_s": 20, "density_kg_m3": 500}, "density_kg_m3"),
        ({"diameter_km": 1, "velocity_km_s": 20, "impact_angle_deg": 0}, "impact_angle_deg"),
        ({"diameter_km": 1, "velocity_km_s": 20, "impact_angle_deg": 91}, "impact_angle_deg"),
        ({"diameter_km": "big", "velocity_km_s": 20}, "diameter_km"),
        ({"velocity_km_s": 20}, "diameter_km"),
        ({"diameter_km": float("nan"), "velocity_km_s": 20}, "diameter_km"),
    ],
)
def test_invalid_input_names_the_field(raw, field):
    with pytest.raises(ImpactValidationError) as ei:
        ImpactParameters.from_mapping(raw)
    assert ei.value.field == field


def test_simulate_rejects_unvalidated_parameters():
    with pytest.raises(ImpactValidationError):
        simulate(ImpactParameters(diameter_km=1.0, velocity_km_s=0.5))


def test_boundaries_accepted():
    p = ImpactParameters.from_mapping({"diameterKm": 0.01, "velocityKmS": 72, "densityKgM3": 8000, "impactAngleDeg": 90})
    assert p.impact_angle_deg == 90.0
    assert p.to_dict() == {"diameterKm": 0.01, "velocityKmS": 72.0, "densityKgM3": 8000.0, "impactAngleDeg": 90.0}


def test_defaults_fill_density_and_angle():
    p = ImpactParameters.from_mapping({"diameter_km": 2, "velocity_km_s": 15})
    assert p.density_kg_m3 == 3000.0
    assert p.impact_angle_deg == 45.0


def test_comparison_bands_are_contiguous():
    assert COMPARISON_BANDS[0][0] == 0.0
    assert COMPARISON_BANDS[-1][1] == math.inf
    for (_, hi, _), (lo, _, _) in zip(COMPARISON_BANDS, COMPARISON_BANDS[1:]):
        assert hi == lo


def test_comparison_label_band_edges():
    assert comparison_label(0.0) == "large conventional bomb"
    assert comparison_label(0.001) == "Hiroshima-class nuclear blast"
    assert comparison_label(1.0) == "Tunguska-class event"
    assert comparison_label(1e9) == "planet-shattering cataclysm"
