"""
Shared validation rules for API input.
Mirrors the client's credential checks so the API enforces the same policy.
"""

import re
from typing import List
from fastapi import Path

MIN_PASSWORD_LENGTH = 8
PASSWORD_SYMBOLS = r"!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?"

_UPPERCASE = re.compile(r"[A-Z]")
_LOWERCASE = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SYMBOL = re.compile(f"[{PASSWORD_SYMBOLS}]")


def password_problems(password: str) -> List[str]:
    """
    List the password requirements that ``password`` does not meet.

    Returns:
        Human-readable requirement descriptions; empty when the password is valid
    """
    if not password:
        return ["a password"]

    problems = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"at least {MIN_PASSWORD_LENGTH} characters")
    if not _UPPERCASE.search(password):
        problems.append("one uppercase letter")
    if not _LOWERCASE.search(password):
        problems.append("one lowercase letter")
    if not _DIGIT.search(password):
        problems.append("one number")
    if not _SYMBOL.search(password):
        problems.append("one symbol (!@#$%^&*()_+-=[]{}|;:,.<>?)")
    return problems


# Path parameter dependencies for common validations
UserIdPath = Path(..., ge=1, le=2147483647, description="User ID")
StoryIdPath = Path(..., ge=1, le=2147483647, description="Story ID")
