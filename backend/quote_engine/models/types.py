"""
跨方言列类型
"""
from sqlalchemy import JSON, Enum
from sqlalchemy.dialects.postgresql import JSONB

# PostgreSQL 使用 JSONB，其他方言退化为 JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")


def StatusEnum(enum_cls, length: int = 30) -> Enum:
    """以字符串值存储的状态枚举列"""
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
