"""Options passed to every check function."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from chart_verifier.chart.loader import ChartHandle


class CheckOptions(BaseModel):
    """Что получает функция проверки: чарт и параметры прогона."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    chart: ChartHandle = Field(..., description="Materialized chart, read-only")
    values: Dict[str, Any] = Field(default_factory=dict, description="Values overrides")
    platform_version: str = Field("", description="Resolved platform version, empty if unknown")
    namespace: str = Field("default", description="Namespace for live-environment checks")
    kubeconfig: Optional[str] = Field(None, description="Path to kubeconfig")
    kube_context: Optional[str] = Field(None, description="kubeconfig context")
    debug: bool = False


class RunOptions(BaseModel):
    """Параметры одного вызова Verifier.verify()."""

    model_config = ConfigDict(frozen=True)

    platform_version: str = Field("", description="Caller-supplied platform version")
    values: Dict[str, Any] = Field(default_factory=dict)
    namespace: str = "default"
    kubeconfig: Optional[str] = None
    kube_context: Optional[str] = None
    debug: bool = False
