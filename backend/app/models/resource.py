from sqlalchemy import Column, Integer, String, UniqueConstraint
from app.core.database import Base


class Resource(Base):
    """Request counter per API endpoint and HTTP method."""

    __tablename__ = "resource"

    id = Column(Integer, primary_key=True, index=True)
    endpoint = Column(String(255), nullable=False)
    method = Column(String(10), nullable=False)
    requests = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("endpoint", "method", name="uq_resource_endpoint_method"),
    )
