from sqlalchemy import Column, Integer, String, Float, Text

from orderboard.db.database import Base


class OrderRecord(Base):
    """Mirror row for one order. Column names follow the hosted `pedidos` table."""
    __tablename__ = "pedidos"

    id = Column(String(64), primary_key=True)
    purchase_id = Column(String(128), unique=True, index=True, nullable=False)
    buyer_name = Column(String(255), nullable=False)
    buyer_phone = Column(String(64))
    product_title = Column(String(255))
    tracking_code = Column(String(128))
    quantity = Column(Integer)
    product_value = Column(Float)
    purchase_date = Column(String(32))
    current_location = Column(String(255))
    observations = Column(Text)
    status = Column(String(32), nullable=False)  # board status
    braip_status = Column(String(32))
    updated_at = Column(String(64), index=True)
