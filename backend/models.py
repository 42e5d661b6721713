# backend/models.py
from sqlalchemy import Column, String, Text
from db import Base
import uuid

def uuid4str():
    return str(uuid.uuid4())

class Document(Base):
    __tablename__ = "documents"
    id = Column(String, primary_key=True, default=uuid4str)
    name = Column(String)
    original_filename = Column(String, nullable=True)
    document_type = Column(String, nullable=True)  # e.g. lease-forwarding, agreement-to-lease
    content = Column(Text, default="")             # working markup; the blank-space registry reads it directly
    status = Column(String, default="uploaded")    # uploaded|in_progress|completed
