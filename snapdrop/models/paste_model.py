from sqlalchemy import Column, BigInteger, Integer, String, Text, TIMESTAMP, Boolean
from sqlalchemy.sql import expression, func
from snapdrop.models.base import Base


class Paste(Base):
    __tablename__ = "paste_tbl"

    paste_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    key = Column(String(16), nullable=False, unique=True, index=True)
    content = Column(Text, nullable=False, server_default="")
    filename = Column(Text)
    views = Column(Integer, nullable=False, server_default="0")
    delete_after_view = Column(Boolean, nullable=False, server_default=expression.false())
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False, index=True)