"""Password strength policy (zxcvbn score threshold)."""

from __future__ import annotations

from typing import NamedTuple, Optional, Sequence

from zxcvbn import zxcvbn

from narcisse.core.config import settings


class PasswordEvaluation(NamedTuple):
    valid: bool
    score: int
    feedback: Optional[str] = None


def evaluate_password(password: str, user_inputs: Sequence[str] = ()) -> PasswordEvaluation:
    trimmed = (password or "").strip()
    if not trimmed:
        return PasswordEvaluation(valid=False, score=0, feedback="Mot de passe requis.")

    result = zxcvbn(trimmed, user_inputs=[value for value in user_inputs if value])
    score = int(result["score"])
    valid = score >= settings.password_min_score
    if valid:
        return PasswordEvaluation(valid=True, score=score)

    feedback = result.get("feedback") or {}
    suggestions = feedback.get("suggestions") or []
    message = feedback.get("warning") or (suggestions[0] if suggestions else None)
    return PasswordEvaluation(valid=False, score=score, feedback=message or "Mot de passe trop faible.")
