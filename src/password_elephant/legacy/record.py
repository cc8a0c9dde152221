# password_elephant/legacy/record.py
from typing import Dict, List, Optional

from password_elephant.legacy.field import BlockDecryptor, FieldType, PasswordSafeField


class PasswordSafeRecord:
    """Consecutive fields up to and including an EndOfRecord field."""

    def __init__(self, fields: List[PasswordSafeField], is_utf8: bool = False):
        self.fields = fields
        self.is_utf8 = is_utf8
        self.field_by_type: Dict[FieldType, PasswordSafeField] = {f.type: f for f in fields}

    @classmethod
    def read(cls, decryptor: BlockDecryptor, data: bytes, offset: int,
             is_utf8: bool = False) -> Optional['PasswordSafeRecord']:
        fields = []
        position = offset
        while position < len(data):
            field = PasswordSafeField.read(decryptor, data, position)
            if field is None:
                break
            position += field.cipher_length
            fields.append(field)
            if field.type in (FieldType.END_OF_RECORD, FieldType.END_OF_DATABASE):
                break
        if not fields:
            return None
        return cls(fields, is_utf8)

    @property
    def cipher_length(self) -> int:
        return sum(f.cipher_length for f in self.fields)

    @property
    def is_end_of_database(self) -> bool:
        return bool(self.fields) and self.fields[-1].type == FieldType.END_OF_DATABASE

    def _text(self, field_type: FieldType) -> Optional[str]:
        field = self.field_by_type.get(field_type)
        return field.text(self.is_utf8) if field else None

    @property
    def uuid(self) -> Optional[str]:
        field = self.field_by_type.get(FieldType.UUID)
        return field.uuid if field else None

    @property
    def group(self) -> Optional[str]:
        return self._text(FieldType.GROUP)

    @property
    def title(self) -> Optional[str]:
        return self._text(FieldType.TITLE)

    @property
    def username(self) -> Optional[str]:
        return self._text(FieldType.USERNAME)

    @property
    def notes(self) -> Optional[str]:
        return self._text(FieldType.NOTES)

    @property
    def password(self) -> Optional[str]:
        return self._text(FieldType.PASSWORD)

    @property
    def url(self) -> Optional[str]:
        return self._text(FieldType.URL)

    def __repr__(self):
        return "\n".join(repr(f) for f in self.fields)
