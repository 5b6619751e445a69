import re
from unittest.mock import patch

import pytest

from svfe.utils import (
    agregar_guion,
    convert_to_null,
    fecha_procesamiento,
    formatear_numero,
    generate_control,
    generate_uuid,
    get_el_salvador_datetime,
)


class TestConvertToNull:
    @pytest.mark.parametrize("valor", ["", "0", "N/A", None])
    def test_valores_vacios(self, valor):
        assert convert_to_null(valor) is None

    def test_conserva_valor(self):
        assert convert_to_null("12345") == "12345"

    def test_idempotente(self):
        for valor in ["", "0", "N/A", None, "abc"]:
            assert convert_to_null(convert_to_null(valor)) == convert_to_null(valor)


class TestNumeroControl:
    def test_formato(self):
        assert generate_control("03", "0001", "0002", "000000000000123") == "DTE-03-00010002-000000000000123"

    def test_correlativo_a_quince_digitos(self):
        assert formatear_numero(123) == "000000000000123"
        assert len(formatear_numero(1)) == 15


class TestGuion:
    def test_agrega_guion_antes_del_ultimo_digito(self):
        assert agregar_guion("012345678") == "01234567-8"

    def test_no_duplica_guion(self):
        assert agregar_guion("01234567-8") == "01234567-8"


class TestRelojEIdentificador:
    def test_uuid_distinto_en_cada_llamada(self):
        assert generate_uuid() != generate_uuid()

    def test_fecha_y_hora_de_emision(self):
        ahora = get_el_salvador_datetime()
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", ahora["fecEmi"])
        assert re.fullmatch(r"\d{2}:\d{2}:\d{2}", ahora["horEmi"])

    def test_fecha_procesamiento(self):
        assert re.fullmatch(r"\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2}", fecha_procesamiento())

    def test_zona_horaria_configurable(self):
        with patch("svfe.utils.settings.TIMEZONE", "UTC"):
            assert set(get_el_salvador_datetime()) == {"fecEmi", "horEmi"}
