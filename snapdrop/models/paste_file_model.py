from sqlalchemy import Column, BigInteger, Integer, String, Text, TIMESTAMP, ForeignKey
from sqlalchemy.sql import func
from snapdrop.models.base import Base


class PasteFile(Base):
    __tablename__ = "paste_file_tbl"

    file_id = Column(String(36), primary_key=True)
    paste_id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("paste_tbl.paste_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename = Column(Text, nullable=False)
    mime_type = Column(Text, nullable=False, server_default="application/octet-stream")
    size_bytes = Column(BigInteger, nullable=False, server_default="0")
    storage_path = Column(Text, nullable=False, unique=True)
    consumed_at = Column(TIMESTAMP(timezone=True))
    uploaded_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
