# password_elephant/core/schema.py
"""
Protocol Buffers schema of the archive container, built at import time.

    message Feature  { Category category = 1; bytes content = 2; }
    message Entry    { repeated Feature features = 1;
                       PasswordLifetimeUnit passwordLifetimeUnits = 2;
                       int32 passwordLifetimeCount = 3;
                       bool inactive = 4; }
    message Database { repeated Entry entries = 1; }
    message Archive  { string magic = 1; int32 version = 2; int32 count = 3;
                       bytes salt = 4; bytes passHash = 5;
                       bytes innerKeyCipher = 6; bytes outerKeyCipher = 7;
                       bytes iv = 8; bytes cipherText = 9; bytes hmac = 10; }
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "PasswordElephant"

_Field = descriptor_pb2.FieldDescriptorProto

CATEGORY_VALUES = [
    ("raw", 0),
    ("group", 1),
    ("title", 2),
    ("username", 3),
    ("password", 4),
    ("notes", 5),
    ("url", 6),
    ("created", 7),
    ("passwordModified", 8),
    ("modified", 9),
    ("uuid", 10),
    ("passwordLifetimeCount", 11),
    ("passwordLifetimeUnits", 12),
    ("unknown", 13),
]

LIFETIME_UNIT_VALUES = [
    ("days", 0),
    ("weeks", 1),
    ("months", 2),
]


def _add_enum(message, name, values):
    enum = message.enum_type.add()
    enum.name = name
    for value_name, number in values:
        value = enum.value.add()
        value.name = value_name
        value.number = number


def _add_field(message, name, number, field_type, type_name=None, repeated=False):
    field = message.field.add()
    field.name = name
    field.number = number
    field.type = field_type
    field.label = _Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL
    if type_name:
        field.type_name = f".{PACKAGE}.{type_name}"


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "password_elephant/archive.proto"
    file_proto.package = PACKAGE
    file_proto.syntax = "proto3"

    feature = file_proto.message_type.add()
    feature.name = "Feature"
    _add_enum(feature, "Category", CATEGORY_VALUES)
    _add_field(feature, "category", 1, _Field.TYPE_ENUM, "Feature.Category")
    _add_field(feature, "content", 2, _Field.TYPE_BYTES)

    entry = file_proto.message_type.add()
    entry.name = "Entry"
    _add_enum(entry, "PasswordLifetimeUnit", LIFETIME_UNIT_VALUES)
    _add_field(entry, "features", 1, _Field.TYPE_MESSAGE, "Feature", repeated=True)
    _add_field(entry, "passwordLifetimeUnits", 2, _Field.TYPE_ENUM, "Entry.PasswordLifetimeUnit")
    _add_field(entry, "passwordLifetimeCount", 3, _Field.TYPE_INT32)
    _add_field(entry, "inactive", 4, _Field.TYPE_BOOL)

    database = file_proto.message_type.add()
    database.name = "Database"
    _add_field(database, "entries", 1, _Field.TYPE_MESSAGE, "Entry", repeated=True)

    archive = file_proto.message_type.add()
    archive.name = "Archive"
    _add_field(archive, "magic", 1, _Field.TYPE_STRING)
    _add_field(archive, "version", 2, _Field.TYPE_INT32)
    _add_field(archive, "count", 3, _Field.TYPE_INT32)
    for number, name in enumerate(["salt", "passHash", "innerKeyCipher", "outerKeyCipher",
                                   "iv", "cipherText", "hmac"], start=4):
        _add_field(archive, name, number, _Field.TYPE_BYTES)

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.{name}"))


FeatureMessage = _message_class("Feature")
EntryMessage = _message_class("Entry")
DatabaseMessage = _message_class("Database")
ArchiveMessage = _message_class("Archive")
