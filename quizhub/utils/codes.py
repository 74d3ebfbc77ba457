"""
Enrollment code generation
"""
import logging
import secrets
import string
from typing import Callable

from quizhub.config import settings

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_quiz_code(length: int = None) -> str:
    """Random upper-case alphanumeric code"""
    length = length or settings.QUIZ_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def generate_unique_code(is_taken: Callable[[str], bool], length: int = None) -> str:
    """
    Generate codes until one is not in use

    Args:
        is_taken: Predicate answering whether a code already exists
        length: Code length (default from settings)

    Returns:
        A code for which is_taken returned False
    """
    collisions = 0
    code = generate_quiz_code(length)
    while is_taken(code):
        collisions += 1
        code = generate_quiz_code(length)

    if collisions:
        logger.info(f"Quiz code generated after {collisions} collisions")
    return code
