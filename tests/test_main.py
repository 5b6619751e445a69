from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from svfe.errores import TransmisionError, ValidationError
from svfe.main import app
from svfe.models import Desenlace, RespuestaMH, ResultadoDTE

from .conftest import CONTRIBUYENTE, TRANSMITTER

FACTURA = {
    "transmitter": TRANSMITTER,
    "codEstable": "0001",
    "codPuntoVenta": "0002",
    "nextCorrelative": 1,
    "customer": {"nombre": "JUAN PEREZ"},
    "products": [{"productName": "Café", "quantity": 1, "price": 1.13, "total_gravada": 1.13}],
}

HEADERS = {"Authorization": "Bearer token-mh"}


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _resultado(desenlace=Desenlace.PROCESADO):
    return ResultadoDTE(
        desenlace=desenlace,
        mh=RespuestaMH(estado="PROCESADO", selloRecibido="SELLO"),
        documento={"identificacion": {"codigoGeneracion": "ABC"}},
    )


class TestEndpoints:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "mensaje" in response.json()

    @patch("svfe.main.process_factura", new_callable=AsyncMock)
    def test_factura(self, mock_proceso, client):
        mock_proceso.return_value = _resultado()
        response = client.post("/factura", json=FACTURA, headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["desenlace"] == "PROCESADO"
        assert response.json()["mh"]["selloRecibido"] == "SELLO"
        data, token = mock_proceso.call_args[0]
        assert token == "Bearer token-mh"
        assert data.products[0].product_name == "Café"

    def test_factura_sin_token(self, client):
        response = client.post("/factura", json=FACTURA)
        assert response.status_code == 422

    @patch("svfe.main.process_factura", new_callable=AsyncMock)
    def test_error_de_validacion(self, mock_proceso, client):
        mock_proceso.side_effect = ValidationError("products", "el documento no tiene productos")
        response = client.post("/factura", json=FACTURA, headers=HEADERS)

        assert response.status_code == 422
        assert "products" in response.json()["detail"]

    @patch("svfe.main.process_factura", new_callable=AsyncMock)
    def test_error_inesperado(self, mock_proceso, client):
        mock_proceso.side_effect = KeyError("identificacion")
        response = client.post("/factura", json=FACTURA, headers=HEADERS)
        assert response.status_code == 500

    @patch("svfe.main.process_credito_fiscal", new_callable=AsyncMock)
    def test_credito_fiscal(self, mock_proceso, client):
        mock_proceso.return_value = _resultado(Desenlace.RECHAZADO)
        body = dict(FACTURA, customer=CONTRIBUYENTE)
        response = client.post("/credito-fiscal", json=body, headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["desenlace"] == "RECHAZADO"

    @patch("svfe.main.check_dte")
    def test_consulta(self, mock_check, client):
        mock_check.return_value = {"estado": "PROCESADO"}
        body = {"nitEmisor": "0614", "tdte": "01", "codigoGeneracion": "ABC", "ambiente": "01"}
        response = client.post("/consulta", json=body, headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {"estado": "PROCESADO"}
        mock_check.assert_called_once_with(
            {"nitEmisor": "0614", "tdte": "01", "codigoGeneracion": "ABC"},
            "Bearer token-mh",
            ambiente="01",
        )

    @patch("svfe.main.check_dte", side_effect=TransmisionError("sin red"))
    def test_consulta_sin_respuesta(self, mock_check, client):
        body = {"nitEmisor": "0614", "tdte": "01", "codigoGeneracion": "ABC"}
        response = client.post("/consulta", json=body, headers=HEADERS)
        assert response.status_code == 502
