# password_elephant/core/generator.py
import secrets
import string
from dataclasses import dataclass

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
NUMBERS = string.digits
PUNCTUATION = ".,!?;:"
SPECIAL = "`~@#$%^&*+=[]{}'\"/\\|<>()"


@dataclass
class PasswordGenerator:
    """Generates passwords with a minimum count from each character class."""
    length: int = 16
    min_lowercase: int = 6
    min_uppercase: int = 6
    min_numbers: int = 4
    min_punctuation: int = 0
    min_special: int = 0

    def _classes(self):
        return [
            (LOWERCASE, self.min_lowercase),
            (UPPERCASE, self.min_uppercase),
            (NUMBERS, self.min_numbers),
            (PUNCTUATION, self.min_punctuation),
            (SPECIAL, self.min_special),
        ]

    def generate(self) -> str:
        classes = self._classes()
        if any(minimum < 0 for _, minimum in classes):
            raise ValueError("Minimum character counts must not be negative.")
        required = sum(minimum for _, minimum in classes)
        if required > self.length:
            raise ValueError(f"Minimum character counts ({required}) exceed the length ({self.length}).")
        pool = "".join(chars for chars, minimum in classes if minimum > 0)
        if not pool:
            raise ValueError("At least one character class must be enabled.")

        chars = [secrets.choice(charset) for charset, minimum in classes for _ in range(minimum)]
        chars += [secrets.choice(pool) for _ in range(self.length - required)]
        secrets.SystemRandom().shuffle(chars)
        return "".join(chars)
