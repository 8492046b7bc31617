# Password Strength Scorer
#
# Points: length thresholds (8/12/16/20), one per character class present,
# -2 for a common pattern. Score maps to Weak/Fair/Good/Strong.

import string
from dataclasses import dataclass, field
from typing import Any, Dict, List

SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"
COMMON_PATTERNS = ("123", "abc", "password", "qwerty", "admin")

LENGTH_THRESHOLDS = (8, 12, 16, 20)

# (max score, label, percentage)
STRENGTH_TIERS = (
    (2, "Weak", 25),
    (4, "Fair", 50),
    (6, "Good", 75),
)
STRONGEST_TIER = ("Strong", 100)


@dataclass(frozen=True)
class PasswordStrength:
    score: int
    strength: str
    percentage: int
    feedback: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "strength": self.strength,
            "percentage": self.percentage,
            "feedback": list(self.feedback),
        }


def score_password(password: str) -> PasswordStrength:
    """
    Score a password.

    Returns:
        PasswordStrength with score, label, percentage and feedback hints
    """
    score = 0
    feedback: List[str] = []
    length = len(password)

    score += sum(1 for threshold in LENGTH_THRESHOLDS if length >= threshold)
    if length < 8:
        feedback.append("Use at least 8 characters")

    classes = (
        (any(c.islower() for c in password), "Add lowercase letters"),
        (any(c.isupper() for c in password), "Add uppercase letters"),
        (any(c in string.digits for c in password), "Add numbers"),
        (any(c in SPECIAL_CHARACTERS for c in password), "Add special characters"),
    )
    for present, hint in classes:
        if present:
            score += 1
        else:
            feedback.append(hint)

    lowered = password.lower()
    for pattern in COMMON_PATTERNS:
        if pattern in lowered:
            score -= 2
            feedback.append("Avoid common patterns")
            break

    score = max(score, 0)

    for max_score, label, percentage in STRENGTH_TIERS:
        if score <= max_score:
            return PasswordStrength(score, label, percentage, feedback)
    label, percentage = STRONGEST_TIER
    return PasswordStrength(score, label, percentage, feedback)
