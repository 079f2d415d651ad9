"""
Модели SQLAlchemy для базы данных сервисного центра
"""
import uuid

from sqlalchemy import (
    Column, String, DateTime, Text, Boolean, Numeric, BigInteger,
    ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func


Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Client(Base):
    """
    Клиенты сервисного центра.
    search_key - нормализованные имя/email/телефон для поиска без учета регистра и диакритики
    """
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=_new_id)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    company_name = Column(String(300), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(255), nullable=True)
    search_key = Column(Text, nullable=False, default="")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Отношения
    equipments = relationship("Equipment", back_populates="owner", cascade="all, delete-orphan")
    orders = relationship("ServiceOrder", back_populates="client")


class Technician(Base):
    """
    Техники (исполнители заказов)
    """
    __tablename__ = "technicians"

    id = Column(String(36), primary_key=True, default=_new_id)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    telegram_chat_id = Column(BigInteger, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    orders = relationship("ServiceOrder", back_populates="technician")


class Equipment(Base):
    """
    Оборудование клиентов
    """
    __tablename__ = "equipments"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    equipment_type = Column(String(20), nullable=False)
    equipment_subtype = Column(String(255), nullable=True)
    brand = Column(String(255), nullable=False)
    model = Column(String(255), nullable=False)
    serial_number = Column(String(255), nullable=True)
    status = Column(String(20), default="active", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("Client", back_populates="equipments")
    orders = relationship("ServiceOrder", back_populates="equipment")

    __table_args__ = (
        CheckConstraint("equipment_type IN ('Laptop', 'PC', 'Server')", name="check_equipment_type"),
    )


class ServiceOrder(Base):
    """
    Заказы на обслуживание
    """
    __tablename__ = "service_orders"

    id = Column(String(36), primary_key=True, default=_new_id)
    order_number = Column(String(50), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False)
    equipment_id = Column(String(36), ForeignKey("equipments.id"), nullable=False)
    technician_id = Column(String(36), ForeignKey("technicians.id"), nullable=True)

    # Приемка устройства
    device_condition = Column(Text, nullable=True)
    accessories = Column(Text, nullable=True)
    problem_description = Column(Text, nullable=False)
    client_notes = Column(Text, nullable=True)

    priority = Column(String(20), default="medium", nullable=False)
    estimated_cost = Column(Numeric(12, 2), nullable=True)
    advance_payment = Column(Numeric(12, 2), default=0, nullable=False)
    status = Column(String(30), default="received", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    client = relationship("Client", back_populates="orders")
    equipment = relationship("Equipment", back_populates="orders")
    technician = relationship("Technician", back_populates="orders")

    __table_args__ = (
        CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="check_order_priority"),
        CheckConstraint("advance_payment >= 0", name="check_advance_payment"),
        Index("idx_orders_status_created", "status", "created_at"),
    )


class SystemLog(Base):
    """
    Системные логи
    """
    __tablename__ = "system_logs"

    id = Column(String(36), primary_key=True, default=_new_id)
    level = Column(String(20), nullable=False)  # WARNING, ERROR, CRITICAL, BUSINESS
    message = Column(Text, nullable=False)
    extra_data = Column(Text, nullable=True)  # JSON
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("level IN ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL', 'BUSINESS')", name="check_log_level"),
        Index("idx_logs_level_created", "level", "created_at"),
    )
