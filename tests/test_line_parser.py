"""Tests del parser de líneas del Arduino.

Casos cubiertos:
1. Extracción del objeto entre llaves con texto alrededor
2. Líneas vacías y de diagnóstico
3. Lecturas válidas
4. Payload malformado y violaciones de schema (nunca lanzan)
"""

import json
import math
from datetime import datetime, timedelta, timezone

import pytest

from monitor_api.device import DeviceLineParser, MalformedPayload, SchemaViolation


VALID_LINE = '{"t_water":27.5,"t_air":28.1,"p_air":2.4,"p_water":3.1}'


@pytest.fixture
def parser() -> DeviceLineParser:
    return DeviceLineParser()


# =============================================================================
# EXTRACCIÓN
# =============================================================================

class TestExtractPayload:

    def test_ignores_surrounding_text(self):
        line = 'DEBUG xyz {"t_water":1,"t_air":2,"p_air":3,"p_water":4} trailing'
        assert DeviceLineParser.extract_payload(line) == '{"t_water":1,"t_air":2,"p_air":3,"p_water":4}'

    def test_uses_first_open_and_last_close(self):
        assert DeviceLineParser.extract_payload("a {x} b {y} c") == "{x} b {y}"

    @pytest.mark.parametrize("line", ["no braces", "only { open", "only } close", "} reversed {"])
    def test_none_without_delimited_object(self, line):
        assert DeviceLineParser.extract_payload(line) is None


# =============================================================================
# DECODIFICACIÓN
# =============================================================================

class TestDecodeAndValidate:

    def test_valid_payload(self):
        before = datetime.now(timezone.utc)
        reading = DeviceLineParser.decode_and_validate(VALID_LINE)

        assert reading.water_temp == 27.5
        assert reading.air_temp == 28.1
        assert reading.air_pressure == 2.4
        assert reading.water_pressure == 3.1
        assert before - timedelta(seconds=1) <= reading.ts <= datetime.now(timezone.utc)

    def test_integers_are_accepted(self):
        reading = DeviceLineParser.decode_and_validate('{"t_water":1,"t_air":2,"p_air":3,"p_water":4}')
        assert reading.to_dict()["t_water"] == 1.0

    def test_extra_fields_are_ignored(self):
        payload = json.dumps({"t_water": 1, "t_air": 2, "p_air": 3, "p_water": 4, "rssi": -70})
        assert DeviceLineParser.decode_and_validate(payload).water_pressure == 4

    @pytest.mark.parametrize("payload", ["{not json}", "{'t_water': 1}", "{"])
    def test_malformed(self, payload):
        with pytest.raises(MalformedPayload):
            DeviceLineParser.decode_and_validate(payload)

    def test_non_object_is_malformed(self):
        with pytest.raises(MalformedPayload):
            DeviceLineParser.decode_and_validate("[1, 2, 3]")

    @pytest.mark.parametrize(
        "data",
        [
            {"t_water": "bad"},
            {"t_water": 1, "t_air": 2, "p_air": 3},
            {"t_water": "27.5", "t_air": 2, "p_air": 3, "p_water": 4},
            {"t_water": True, "t_air": 2, "p_air": 3, "p_water": 4},
            {"t_water": None, "t_air": 2, "p_air": 3, "p_water": 4},
        ],
    )
    def test_schema_violation(self, data):
        with pytest.raises(SchemaViolation):
            DeviceLineParser.decode_and_validate(json.dumps(data))

    def test_nan_is_schema_violation(self):
        # json.loads acepta NaN/Infinity; el schema no.
        with pytest.raises(SchemaViolation):
            DeviceLineParser.decode_and_validate('{"t_water":NaN,"t_air":2,"p_air":3,"p_water":4}')
        with pytest.raises(SchemaViolation):
            DeviceLineParser.decode_and_validate('{"t_water":1,"t_air":Infinity,"p_air":3,"p_water":4}')


# =============================================================================
# PROCESS_LINE
# =============================================================================

class TestProcessLine:
    """process_line nunca lanza: degrada a None."""

    @pytest.mark.parametrize("line", ["", "   ", "\r\n", "\t"])
    def test_blank_lines_have_no_side_effects(self, parser, line):
        assert parser.process_line(line) is None
        assert parser.stats.to_dict() == DeviceLineParser().stats.to_dict()

    def test_valid_line(self, parser):
        reading = parser.process_line(VALID_LINE + "\r\n")

        assert reading is not None
        assert (reading.water_temp, reading.air_temp, reading.air_pressure, reading.water_pressure) == (
            27.5,
            28.1,
            2.4,
            3.1,
        )
        assert parser.stats.accepted == 1

    def test_valid_line_with_debug_prefix(self, parser):
        reading = parser.process_line("DEBUG adc=512 " + VALID_LINE)
        assert reading is not None
        assert math.isclose(reading.water_temp, 27.5)

    def test_schema_violation_returns_none(self, parser):
        assert parser.process_line('{"t_water":"bad"}') is None
        assert parser.stats.schema_violations == 1
        assert parser.stats.accepted == 0

    def test_malformed_returns_none(self, parser):
        assert parser.process_line("{garbage") is None
        assert parser.process_line("x {garbage} y") is None
        assert parser.stats.malformed == 1
        assert parser.stats.ignored == 1

    @pytest.mark.parametrize("line", ["DEBUG: sensors warming up", "// boot ok", "Arduino ready"])
    def test_text_lines_are_ignored(self, parser, line):
        assert parser.process_line(line) is None
        assert parser.stats.ignored == 1

    def test_custom_debug_prefixes(self):
        parser = DeviceLineParser(debug_prefixes=("#",))
        assert parser.process_line("# comment") is None
        assert parser.stats.ignored == 1

    def test_rejected_counts_malformed_and_schema(self, parser):
        parser.process_line("{bad json}")
        parser.process_line('{"t_water":1}')
        parser.process_line(VALID_LINE)

        assert parser.stats.rejected == 2
        assert parser.stats.accepted == 1
