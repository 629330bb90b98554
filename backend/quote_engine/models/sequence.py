"""
单据编号计数器
"""
import uuid

from sqlalchemy import Column, Date, Integer, String, UniqueConstraint, Uuid

from quote_engine.core.database import Base


class DocumentSequence(Base):
    """按 (前缀, 日期) 计数的编号序列"""
    __tablename__ = "document_sequences"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="ID")
    prefix = Column(String(20), nullable=False, comment="编号前缀")
    sequence_date = Column(Date, nullable=False, comment="序列日期")
    current_value = Column(Integer, nullable=False, default=0, comment="当前值")

    __table_args__ = (
        UniqueConstraint("prefix", "sequence_date", name="uq_sequence_prefix_date"),
    )
