import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from svfe.errores import FirmaError, FirmaNoEncontrada
from svfe.firmador import firmar_documento

URL = "http://firmador.local/firmardocumento/"


def _respuesta(json_data=None, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = json_data
    response.raise_for_status.return_value = None
    return response


def _firmar(*args, **kwargs):
    return asyncio.run(firmar_documento(*args, **kwargs))


class TestFirmador:
    @patch("svfe.firmador.httpx.AsyncClient")
    def test_devuelve_body_firmado(self, mock_client):
        cliente = mock_client.return_value
        cliente.post = AsyncMock(return_value=_respuesta({"status": "OK", "body": "eyJhbGciOi.firmado"}))
        cliente.aclose = AsyncMock()
        envio = {"nit": "1", "activo": True, "passwordPri": "x", "dteJson": {}}

        assert _firmar(envio, URL, timeout=5) == "eyJhbGciOi.firmado"
        mock_client.assert_called_once_with(timeout=5)
        cliente.post.assert_awaited_once_with(URL, json=envio)
        cliente.aclose.assert_awaited_once()

    @patch("svfe.firmador.httpx.AsyncClient")
    def test_sin_body(self, mock_client):
        mock_client.return_value.post = AsyncMock(return_value=_respuesta({"status": "ERROR"}))
        mock_client.return_value.aclose = AsyncMock()
        with pytest.raises(FirmaNoEncontrada):
            _firmar({}, URL)

    @patch("svfe.firmador.httpx.AsyncClient")
    def test_respuesta_no_json(self, mock_client):
        response = _respuesta()
        response.json.side_effect = ValueError("no es JSON")
        mock_client.return_value.post = AsyncMock(return_value=response)
        mock_client.return_value.aclose = AsyncMock()
        with pytest.raises(FirmaNoEncontrada):
            _firmar({}, URL)

    @patch("svfe.firmador.httpx.AsyncClient")
    def test_firmador_caido(self, mock_client):
        mock_client.return_value.post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        mock_client.return_value.aclose = AsyncMock()
        with pytest.raises(FirmaError):
            _firmar({}, URL)
        mock_client.return_value.aclose.assert_awaited_once()

    @patch("svfe.firmador.httpx.AsyncClient")
    def test_estado_http_de_error(self, mock_client):
        response = _respuesta()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "500", request=MagicMock(), response=MagicMock()
        )
        mock_client.return_value.post = AsyncMock(return_value=response)
        mock_client.return_value.aclose = AsyncMock()
        with pytest.raises(FirmaError):
            _firmar({}, URL)
