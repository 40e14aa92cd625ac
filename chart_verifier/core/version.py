"""
Platform version resolution.

The live environment is asked first; the caller-supplied version is the
fallback. The precedence table lives in resolve_platform_version() so it
can be tested without a Verifier:

    live query | caller value   | result
    -----------+----------------+------------------------------
    ok         | anything       | Resolved(live)
    error      | valid version  | Resolved(caller)
    error      | malformed      | Unresolved(fatal=True)
    error      | empty          | Unresolved(fatal=False)
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Union

import semver

logger = logging.getLogger(__name__)


class VersionProbeError(Exception):
    """Живой запрос версии платформы не удался."""
    pass


class VersionProbe(Protocol):
    """Источник версии работающей платформы."""

    async def get_version(self, debug: bool = False) -> str:
        ...


@dataclass(frozen=True)
class Resolved:
    version: str
    source: str  # "live" или "user"


@dataclass(frozen=True)
class Unresolved:
    reason: str
    # fatal: пользователь передал некорректную версию, продолжать нельзя
    fatal: bool


VersionResolution = Union[Resolved, Unresolved]


def parse_version(value: str) -> Optional[semver.Version]:
    """
    Разобрать semver версию; None, если строка не является версией.

    Допускаются префикс "v" и сокращённые формы ("4.9" == "4.9.0"),
    а также prerelease части OpenShift: 4.8.0-fc.3, 4.9.0-0.nightly-...
    """
    if not value:
        return None
    text = value.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return semver.Version.parse(text, optional_minor_and_patch=True)
    except ValueError:
        return None


def is_applicable(platform_version: str, applicable_since: Optional[str]) -> bool:
    """Проверка применима, если версия платформы не ниже границы."""
    if applicable_since is None:
        return True
    current = parse_version(platform_version)
    bound = parse_version(applicable_since)
    if current is None or bound is None:
        return False
    return current >= bound


async def query_live_version(probe: Optional[VersionProbe], debug: bool = False) -> Optional[str]:
    """
    Спросить версию у живого окружения.

    Returns:
        Версию или None, если запрос не удался или вернул не версию
    """
    if probe is None:
        return None
    try:
        version = await probe.get_version(debug)
    except Exception as e:
        logger.warning(f"Live platform version query failed: {e}")
        return None

    if parse_version(version) is None:
        logger.warning(f"Live platform version query returned unparsable value {version!r}")
        return None
    return version


def resolve_from(live_version: Optional[str], user_version: str) -> VersionResolution:
    """Чистая таблица приоритетов: живая версия важнее пользовательской."""
    if live_version is not None:
        if user_version and user_version != live_version:
            logger.info(f"Using live platform version {live_version}, ignoring {user_version!r}")
        return Resolved(version=live_version, source="live")

    if not user_version:
        return Unresolved(reason="platform version unavailable and none supplied", fatal=False)

    if parse_version(user_version) is None:
        return Unresolved(reason=f"supplied platform version {user_version!r} is not a valid version",
                          fatal=True)

    return Resolved(version=user_version, source="user")


async def resolve_platform_version(user_version: str, probe: Optional[VersionProbe],
                                   debug: bool = False) -> VersionResolution:
    live_version = await query_live_version(probe, debug)
    return resolve_from(live_version, user_version)


class OcVersionProbe:
    """
    Версия OpenShift через `oc version -o json`.

    Args:
        binary: Путь к oc
        kubeconfig: Путь к kubeconfig (опционально)
        kube_context: Контекст kubeconfig (опционально)
        timeout_seconds: Сколько ждать ответа oc
    """

    def __init__(self, binary: str = "oc", kubeconfig: Optional[str] = None,
                 kube_context: Optional[str] = None, timeout_seconds: float = 30.0):
        self.binary = binary
        self.kubeconfig = kubeconfig
        self.kube_context = kube_context
        self.timeout_seconds = timeout_seconds

    def _command(self) -> List[str]:
        cmd = [self.binary, "version", "-o", "json"]
        if self.kubeconfig:
            cmd += ["--kubeconfig", self.kubeconfig]
        if self.kube_context:
            cmd += ["--context", self.kube_context]
        return cmd

    async def get_version(self, debug: bool = False) -> str:
        cmd = self._command()
        if debug:
            logger.debug(f"Running {' '.join(cmd)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise VersionProbeError(f"cannot run {self.binary}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise VersionProbeError(f"{self.binary} timed out after {self.timeout_seconds}s") from e

        if proc.returncode != 0:
            raise VersionProbeError(stderr.decode("utf-8", "replace").strip() or f"exit code {proc.returncode}")

        try:
            payload = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise VersionProbeError(f"unexpected {self.binary} output: {e}") from e

        version = payload.get("openshiftVersion") if isinstance(payload, dict) else None
        if not version:
            raise VersionProbeError("openshiftVersion not reported (not an OpenShift cluster?)")
        return version
