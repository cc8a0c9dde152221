import json
import logging
import os
from pathlib import Path

from password_elephant.core.generator import PasswordGenerator

DATA_DIR = Path(os.path.expanduser('~/.password_elephant'))
SETTINGS_FILE = DATA_DIR / 'settings.json'
DEFAULT_ARCHIVE = DATA_DIR / 'passwords.elephant'

DEFAULTS = {
    "show_inactive_entries": False,
    "default_archive": None,
    "generator_length": 16,
    "generator_min_lowercase": 6,
    "generator_min_uppercase": 6,
    "generator_min_numbers": 4,
    "generator_min_punctuation": 0,
    "generator_min_special": 0,
}


def check_type(name: str, value) -> None:
    """Raise ValueError unless value has the type of the setting's default."""
    default = DEFAULTS[name]
    if default is None:
        valid = value is None or isinstance(value, str)
        expected = "a string"
    else:
        # bool is an int subclass, so compare exact types.
        valid = type(value) is type(default)
        expected = "true or false" if isinstance(default, bool) else "a whole number"
    if not valid:
        raise ValueError(f"Setting {name} must be {expected}, got {value!r}")


class Settings:
    def __init__(self, path: Path = SETTINGS_FILE):
        self.path = Path(path)
        self.values = dict(DEFAULTS)
        self.load()

    def __getattr__(self, name):
        values = self.__dict__.get("values", {})
        if name in values:
            return values[name]
        raise AttributeError(name)

    def set(self, name: str, value) -> None:
        if name not in DEFAULTS:
            raise KeyError(f"Unknown setting: {name}")
        check_type(name, value)
        self.values[name] = value

    @property
    def archive_path(self) -> Path:
        configured = self.values.get("default_archive")
        return Path(configured).expanduser() if configured else DEFAULT_ARCHIVE

    def generator(self) -> PasswordGenerator:
        return PasswordGenerator(
            length=self.generator_length,
            min_lowercase=self.generator_min_lowercase,
            min_uppercase=self.generator_min_uppercase,
            min_numbers=self.generator_min_numbers,
            min_punctuation=self.generator_min_punctuation,
            min_special=self.generator_min_special,
        )

    def load(self):
        if not self.path.exists():
            return
        with open(self.path, "r") as f:
            data = json.load(f)
        # Unknown keys from other versions are ignored.
        for key in DEFAULTS:
            if key not in data:
                continue
            try:
                check_type(key, data[key])
            except ValueError as e:
                logging.warning(f"Ignoring setting from {self.path}: {e}")
                continue
            self.values[key] = data[key]
        logging.debug(f"Loaded settings from {self.path}")

    def save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self.values, f, indent=2)
        os.chmod(self.path, 0o600)
