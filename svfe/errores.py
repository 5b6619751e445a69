class DTEError(RuntimeError):
    """Error base de la emisión de DTE."""


class ValidationError(DTEError):
    """Faltan datos obligatorios para armar el documento."""

    def __init__(self, campo: str, mensaje: str):
        super().__init__(f"{campo}: {mensaje}")
        self.campo = campo
        self.mensaje = mensaje


class FirmaError(DTEError):
    """El servicio de firma no respondió o devolvió un estado HTTP de error."""


class FirmaNoEncontrada(DTEError):
    """El firmador respondió, pero sin documento firmado en el body."""


class TiempoExcedido(DTEError):
    """Se agotó el tiempo de una etapa de red."""

    def __init__(self, politica):
        super().__init__(f"Tiempo excedido ({politica.segundos}s)")
        self.politica = politica


class TransmisionError(DTEError):
    """No se obtuvo respuesta del Ministerio de Hacienda."""
