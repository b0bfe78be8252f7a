from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON

from app.db.base_class import TenantMixin, Base

DOCUMENT_CATEGORIES = ("Quote", "Invoice", "Delivery", "Payment", "Contract", "Other")
DOCUMENT_RELATIONS = ("Lead", "Opportunity", "Customer", "Quote", "Order", "Invoice", "Activity", "General")


class Document(TenantMixin, Base):
    """Metadata for a stored file; the bytes live under the upload directory."""
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    file_name = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String, nullable=False)
    category = Column(String, nullable=False, default="Other", index=True)
    related_to = Column(String, nullable=False, default="General", index=True)
    related_id = Column(Integer, nullable=True, index=True)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_public = Column(Boolean, nullable=False, default=False)
    access_level = Column(String, nullable=False, default="Internal")
    version = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    download_count = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime, nullable=True)
