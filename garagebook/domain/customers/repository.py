"""Customer repository - Database operations for customers"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Appointment, AppointmentStatus, Customer


class CustomerRepository:
    """Repository for customer database operations"""

    @staticmethod
    def get(db: Session, customer_id: int) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def find_by_phone(db: Session, phone: str) -> Optional[Customer]:
        """Find a customer (active or not) by normalised phone"""
        return db.query(Customer).filter(Customer.phone == phone).first()

    @staticmethod
    def insert(db: Session, **customer_data) -> Customer:
        """Insert a customer; raises IntegrityError when the phone is taken"""
        customer = Customer(**customer_data)
        db.add(customer)
        db.flush()
        return customer

    @staticmethod
    def get_many(db: Session, customer_ids) -> dict[int, Customer]:
        ids = set(customer_ids)
        if not ids:
            return {}
        return {c.id: c for c in db.query(Customer).filter(Customer.id.in_(ids)).all()}

    @staticmethod
    def count_by_status(db: Session, customer_id: int, status: AppointmentStatus) -> int:
        return (
            db.query(func.count(Appointment.id))
            .filter(Appointment.customer_id == customer_id, Appointment.status == status)
            .scalar()
        )
