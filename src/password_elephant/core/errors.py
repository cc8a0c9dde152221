# password_elephant/core/errors.py


class PasswordElephantError(Exception):
    """Base class for every error raised by the archive and import code."""


class ArchiveError(PasswordElephantError):
    """Raised while opening or saving a native archive."""


class LegacyImportError(PasswordElephantError):
    """Raised while importing a Password Safe database."""


class IncorrectPassword(ArchiveError, LegacyImportError):
    """The password does not match the stored hash or verifier."""

    def __init__(self):
        super().__init__("Incorrect password")


class UnsupportedVersion(ArchiveError, LegacyImportError):
    def __init__(self, found, expected):
        self.found = found
        self.expected = expected
        super().__init__(f"Unsupported version {found!r} (expected {expected!r})")


class FormatError(ArchiveError, LegacyImportError):
    """The file is structurally corrupt."""

    def __init__(self, description: str):
        self.description = description
        super().__init__(description)


class ArchiveSystemError(ArchiveError, LegacyImportError):
    """An I/O or random generation failure underneath the codec."""

    def __init__(self, description: str):
        self.description = description
        super().__init__(description)


class HMACFailure(ArchiveError):
    """The payload decrypted but its content failed authentication."""

    def __init__(self):
        super().__init__("Archive content failed authentication")


class UnsupportedPreference(LegacyImportError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Unsupported preference field {field!r}")


class UnsupportedField(LegacyImportError):
    def __init__(self, raw_type: int):
        self.raw_type = raw_type
        super().__init__(f"Unsupported field type {raw_type}")
