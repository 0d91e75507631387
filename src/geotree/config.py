"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from GEOTREE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GEOTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Fallback style for dangling or missing style references (KML aabbggrr)
    default_line_color: str = "90101010"
    default_line_width: float = 5.0
    default_fill_color: str = "20101010"

    # Ids generated by StyleSheet.add() are prefix + counter
    style_id_prefix: str = "style"

    # KML output
    kml_namespace: str = "http://www.opengis.net/kml/2.2"
    kml_indent: str = "  "

    # GeoJSON output (None = compact)
    geojson_indent: int | None = None

    # Logging
    log_level: str = "INFO"

    # HTTP service
    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
