"""Tests for rule-based vehicle field extraction."""

import pytest

from src.extraction.rule_extractor import (
    WIRE_KEYS,
    RuleExtractor,
    VehicleRecord,
    extract_chassis,
    extract_labeled,
    extract_titleholders,
    flatten,
    parse_vehicle_text,
    split_lines,
)


class TestVehicleRecord:
    """Tests for the VehicleRecord data class."""

    def test_defaults_all_none(self) -> None:
        record = VehicleRecord()
        assert all(value is None for value in record.to_dict().values())
        assert record.found_count == 0

    def test_to_dict_uses_wire_keys(self) -> None:
        record = VehicleRecord(year="2020", plate="AB 1234")
        data = record.to_dict()
        assert list(data) == list(WIRE_KEYS.values())
        assert data["anio"] == "2020"
        assert data["matricula"] == "AB 1234"

    def test_is_immutable(self) -> None:
        record = VehicleRecord()
        with pytest.raises(AttributeError):
            record.brand = "FIAT"  # type: ignore[misc]


class TestTextShapes:
    """Tests for the flat and line views of the text."""

    def test_flatten(self) -> None:
        assert flatten("A\nB\nC") == "A B C"

    def test_split_lines_trims(self) -> None:
        assert split_lines("  A \n\tB\n") == ["A", "B", ""]


class TestChassis:
    """Tests for VIN extraction."""

    def test_valid_vin(self) -> None:
        assert extract_chassis("CHASIS: 1HGBH41JXMN109186 X") == "1HGBH41JXMN109186"

    @pytest.mark.parametrize("letter", ["I", "O", "Q"])
    def test_rejects_excluded_letters(self, letter: str) -> None:
        candidate = f"1HGBH41JXMN1{letter}9186"
        assert len(candidate) == 17
        assert extract_chassis(f"CHASIS {candidate}") is None

    def test_short_run_ignored(self) -> None:
        assert extract_chassis("ABC1234XY") is None

    def test_first_run_wins(self) -> None:
        text = "9BRBL3HE0K0123456 1HGBH41JXMN109186"
        assert extract_chassis(text) == "9BRBL3HE0K0123456"


class TestLabeledFields:
    """Tests for label-anchored fields."""

    def test_engine_with_colon(self) -> None:
        assert extract_labeled("engine", "MOTOR: 2ZR-FE12345 X") == "2ZR-FE12345"

    def test_engine_with_dash_and_lowercase(self) -> None:
        assert extract_labeled("engine", "motor - abc123") == "abc123"

    def test_engine_too_short(self) -> None:
        assert extract_labeled("engine", "MOTOR: AB12") is None

    def test_brand(self) -> None:
        assert extract_labeled("brand", "Marca: VOLKSWAGEN MODELO") == "VOLKSWAGEN"

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("MODELO: COROLLA XEI AÑO: 2019", "COROLLA XEI"),
            ("MODELO: HILUX SRV MOTOR: 1GD123456", "HILUX SRV"),
            ("MODELO: GOL TREND 1.6 CILINDRADA: 1598", "GOL TREND 1"),
        ],
    )
    def test_model_stops_before_next_label(self, text: str, expected: str) -> None:
        assert extract_labeled("model", text) == expected

    def test_model_max_length(self) -> None:
        value = extract_labeled("model", "MODELO: " + "A" * 60)
        assert value == "A" * 40

    def test_year_accented_and_plain(self) -> None:
        assert extract_labeled("year", "AÑO: 2018") == "2018"
        assert extract_labeled("year", "ano 2017") == "2017"
        assert extract_labeled("year", "Año - 2016") == "2016"

    def test_year_requires_four_digits(self) -> None:
        assert extract_labeled("year", "AÑO: 18") is None

    def test_displacement(self) -> None:
        assert extract_labeled("displacement", "CILINDRADA: 1.598 CC") == "1.598"
        assert extract_labeled("displacement", "cilindrada 125") == "125"

    def test_plate(self) -> None:
        assert extract_labeled("plate", "MATRÍCULA: SBC 1234") == "SBC 1234"
        assert extract_labeled("plate", "matricula-AB1234") == "AB1234"

    def test_plate_no_match(self) -> None:
        assert extract_labeled("plate", "MATRICULA: 1234 AB") is None

    def test_first_occurrence_only(self) -> None:
        text = "MARCA: FIAT MARCA: FORD"
        assert extract_labeled("brand", text) == "FIAT"


class TestTitleholders:
    """Tests for multi-line titleholder accumulation."""

    def test_stops_before_next_label(self) -> None:
        lines = ["TITULAR: JUAN PEREZ", "CALLE FALSA 123", "MOTOR: XYZ"]
        assert extract_titleholders(lines) == "JUAN PEREZ CALLE FALSA 123"

    def test_plural_label_with_dash(self) -> None:
        lines = ["Titulares- ANA SOSA", "LUIS SOSA"]
        assert extract_titleholders(lines) == "ANA SOSA LUIS SOSA"

    def test_label_alone_on_its_line(self) -> None:
        lines = ["TITULAR", "JUAN PEREZ", "MARCA: FIAT"]
        assert extract_titleholders(lines) == "JUAN PEREZ"

    def test_blank_lines_skipped(self) -> None:
        lines = ["TITULAR: JUAN", "", "PEREZ"]
        assert extract_titleholders(lines) == "JUAN PEREZ"

    def test_only_first_label_used(self) -> None:
        lines = ["TITULAR: A", "CHASIS: X", "TITULAR: B"]
        assert extract_titleholders(lines) == "A"

    def test_no_label(self) -> None:
        assert extract_titleholders(["MARCA: FIAT", "MODELO: UNO"]) is None


class TestRuleExtractor:
    """Tests for the composed extractor."""

    def setup_method(self) -> None:
        self.extractor = RuleExtractor()

    def test_empty_text(self) -> None:
        assert self.extractor.extract("") == VehicleRecord()

    def test_flat_scenario(self) -> None:
        text = (
            "MOTOR: ABC1234XY MARCA: TOYOTA MODELO: COROLLA 2020 "
            "AÑO: 2020 MATRICULA: AB 1234"
        )
        record = self.extractor.extract(text)
        assert record.to_dict() == {
            "chasis": None,
            "motor": "ABC1234XY",
            "marca": "TOYOTA",
            "modelo": "COROLLA 2020",
            "anio": "2020",
            "cilindrada": None,
            "matricula": "AB 1234",
            "titulares": None,
        }

    def test_full_document(self, registration_text: str) -> None:
        record = self.extractor.extract(registration_text)
        assert record == VehicleRecord(
            chassis="9BRBL3HE0K0123456",
            engine="2ZR1234567",
            brand="TOYOTA",
            model="COROLLA XEI",
            year="2019",
            displacement="1798",
            plate="SBC 1234",
            titleholders="JUAN PEREZ MARIA GOMEZ",
        )

    def test_repeated_parse_identical(self, registration_text: str) -> None:
        assert self.extractor.extract(registration_text) == self.extractor.extract(
            registration_text
        )

    def test_parse_vehicle_text_helper(self, registration_text: str) -> None:
        assert parse_vehicle_text(registration_text) == self.extractor.extract(
            registration_text
        )

    def test_unrelated_text(self) -> None:
        record = self.extractor.extract("hola mundo\nsin datos")
        assert record.found_count == 0
