"""
Configuration for chart verification.

Values come from the environment (``CHART_VERIFIER_*``) or a ``.env`` file;
CLI flags override them.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VerifierSettings(BaseSettings):
    """Настройки верификатора."""

    model_config = SettingsConfigDict(env_prefix="CHART_VERIFIER_", env_file=".env", extra="ignore")

    # Версия платформы, если живой запрос не удался
    openshift_version: str = ""

    # Загрузка чартов
    http_timeout_seconds: float = Field(30.0, gt=0)

    # Параметры для проверок, работающих с кластером
    namespace: str = "default"
    kubeconfig: Optional[str] = None
    kube_context: Optional[str] = None
    oc_binary: str = "oc"
    oc_timeout_seconds: float = Field(30.0, gt=0)

    debug: bool = False
    log_level: str = "INFO"


@lru_cache
def get_settings() -> VerifierSettings:
    return VerifierSettings()
