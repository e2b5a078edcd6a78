"""Test FDI numbering helpers and chart lookups."""
import pytest

from clinic.chart import is_valid_tooth_number
from clinic.chart.teeth import (
    chart_fill,
    is_deciduous,
    jaw_counts,
    jaw_only_treatments,
    location_label,
    parse_tooth_number,
    tooth_name,
    tooth_name_ar,
    tooth_quadrant,
    tooth_treatments,
    tooth_type,
)
from clinic.models import Jaw, PatientTreatment, TreatmentStatus


def _treatment(id, tooth=None, jaw=None, status=TreatmentStatus.PLANNED):
    return PatientTreatment(
        id=id,
        patient_id="p-1",
        group_id="g",
        treatment_id="t",
        treatment_name="حشوة",
        tooth_number=tooth,
        jaw=jaw,
        status=status,
        doctor_id="owner",
    )


class TestNumbering:

    @pytest.mark.parametrize("value,expected", [
        (16, 16),
        ("16", 16),
        (" 21 - incisor", 21),
        ("abc", None),
        ("", None),
        (None, None),
    ])
    def test_parse_tooth_number(self, value, expected):
        assert parse_tooth_number(value) == expected

    @pytest.mark.parametrize("value", [11, 18, 21, 28, 31, 38, 41, 48, "36"])
    def test_valid_permanent(self, value):
        assert is_valid_tooth_number(value)

    @pytest.mark.parametrize("value", [10, 19, 29, 50, 55, 0, None, "x"])
    def test_invalid(self, value):
        assert not is_valid_tooth_number(value)

    def test_deciduous(self):
        assert is_deciduous(55)
        assert not is_deciduous(16)


class TestDescription:

    @pytest.mark.parametrize("tooth,expected", [
        (16, "Upper Right First Molar"),
        (21, "Upper Left Central Incisor"),
        (38, "Lower Left Third Molar"),
        (45, "Lower Right Second Premolar"),
        (55, "Upper Right Second Molar (Primary)"),
    ])
    def test_tooth_name(self, tooth, expected):
        assert tooth_name(tooth) == expected

    def test_arabic_name(self):
        assert tooth_name_ar(16) == "رحى أولى علوي أيمن"

    def test_quadrant_and_type(self):
        assert tooth_quadrant(44) == "lr"
        assert tooth_quadrant(62) == "ul"
        assert tooth_type(13) == "canine"
        assert tooth_type(14) == "premolar"
        assert tooth_type(84) == "molar"

    @pytest.mark.parametrize("tooth", [19, 50, 99])
    def test_unknown_tooth_rejected(self, tooth):
        with pytest.raises(ValueError):
            tooth_name(tooth)


class TestChartLookups:

    @pytest.fixture
    def treatments(self):
        return [
            _treatment("a", tooth=16),
            _treatment("b", tooth=16, status=TreatmentStatus.COMPLETED),
            _treatment("c", tooth=21, status=TreatmentStatus.COMPLETED),
            _treatment("d", jaw=Jaw.UPPER),
            _treatment("e", jaw=Jaw.BOTH, status=TreatmentStatus.COMPLETED),
        ]

    def test_tooth_treatments(self, treatments):
        assert [t.id for t in tooth_treatments(treatments, 16)] == ["a", "b"]
        assert [t.id for t in tooth_treatments(treatments, 16, TreatmentStatus.COMPLETED)] == ["b"]

    def test_chart_fill(self, treatments):
        assert chart_fill(treatments, TreatmentStatus.COMPLETED) == {
            16: TreatmentStatus.COMPLETED,
            21: TreatmentStatus.COMPLETED,
        }

    def test_jaw_only(self, treatments):
        assert [t.id for t in jaw_only_treatments(treatments)] == ["d", "e"]

    def test_jaw_counts_cover_every_jaw(self, treatments):
        assert jaw_counts(treatments) == {Jaw.UPPER: 1, Jaw.LOWER: 0, Jaw.BOTH: 1}
        assert jaw_counts(treatments, TreatmentStatus.COMPLETED) == {
            Jaw.UPPER: 0, Jaw.LOWER: 0, Jaw.BOTH: 1,
        }

    def test_location_label(self):
        assert location_label(_treatment("x", tooth=16)) == "16"
        assert location_label(_treatment("y", jaw=Jaw.LOWER)) == "سفلي"
        assert location_label(_treatment("z")) == "-"
