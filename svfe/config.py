from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuración leída de variables de entorno o del archivo .env."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Servicio de firma (firmador del MH corriendo junto a la API)
    FIRMADOR_URL: str = "http://localhost:8113/firmardocumento/"

    # Ministerio de Hacienda: pruebas ("00") / producción ("01")
    MH_DTE_TEST: str = "https://apitest.dtes.mh.gob.sv/fesv/recepciondte"
    MH_DTE: str = "https://api.dtes.mh.gob.sv/fesv/recepciondte"
    MH_INVALIDATION_TEST: str = "https://apitest.dtes.mh.gob.sv/fesv/anulardte"
    MH_INVALIDATION: str = "https://api.dtes.mh.gob.sv/fesv/anulardte"
    MH_CHECK_TEST: str = "https://apitest.dtes.mh.gob.sv/fesv/recepcion/consultadte/"
    MH_CHECK: str = "https://api.dtes.mh.gob.sv/fesv/recepcion/consultadte/"

    # Segundos por etapa de red
    TIMEOUT_FIRMA: float = 20.0
    TIMEOUT_MH: float = 20.0

    TIMEZONE: str = "America/El_Salvador"
    CORS_ORIGINS: str = "*"


settings = Settings()
