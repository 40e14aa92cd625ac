"""
Errors that abort a verification run.

Any of these means no Report was produced. A check that runs fine and
finds a problem with the chart is not an error, it is a FAIL outcome.
"""

from typing import Iterable, List


class VerificationError(Exception):
    """Базовая ошибка: прогон проверки прерван, отчёта нет."""
    pass


class SelectionError(VerificationError):
    """Запрошены проверки, которых нет в реестре."""

    def __init__(self, names: Iterable[str]):
        self.names: List[str] = list(names)
        super().__init__(f"unknown check(s): {', '.join(self.names)}")


class AcquisitionError(VerificationError):
    """Чарт не удалось получить или разобрать."""

    def __init__(self, locator: str, message: str):
        self.locator = locator
        super().__init__(f"cannot acquire chart '{locator}': {message}")


class VersionResolutionError(VerificationError):
    """Не удалось определить версию платформы."""
    pass


class CheckExecutionError(VerificationError):
    """Проверка упала сама, а не вернула отрицательный результат."""

    def __init__(self, check_name: str, message: str):
        self.check_name = check_name
        super().__init__(f"check '{check_name}' failed to run: {message}")
