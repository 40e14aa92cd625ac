"""
Chart Verifier

Проверка Helm чартов набором независимых проверок:
- Реестр проверок (обязательные и опциональные)
- Получение и кэширование чартов (архив, каталог, URL)
- Учёт версии платформы для проверок, зависящих от неё
- Детерминированный отчёт с дайджестом

Usage:
    chart-verifier verify ./mychart-0.1.0.tgz
"""

__version__ = "1.0.0"
