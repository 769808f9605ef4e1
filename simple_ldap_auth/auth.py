from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import SearchError
from .validator import Validator

log = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """Результат проверки учётных данных.

    ``error`` отличает сбой каталога от неверного логина/пароля.
    """
    success: bool
    username: str = ""
    error: bool = False
    error_message: str = ""


def authenticate(validator: Validator, username: str, password: str) -> AuthResult:
    """Проверка пары логин/пароль для вызывающего процесса.

    Args:
        validator: Инициализированный Validator
        username: Имя пользователя
        password: Пароль

    Returns:
        AuthResult: Результат проверки
    """
    try:
        ok = validator.is_valid(username, password)
    except SearchError as e:
        log.warning("Directory search failed for user (%s): %s", username, e)
        return AuthResult(success=False, username=username, error=True, error_message=str(e))

    if not ok:
        return AuthResult(success=False, username=username, error_message="Invalid username or password")
    return AuthResult(success=True, username=username)
