"""Customer service - Lookup, deactivation and booking history"""

import logging

from ...models import AppointmentStatus, Customer
from ...shared.errors import NotFoundError
from ...unit_of_work import UnitOfWork
from ..appointments.mapper import to_response as appointment_response
from ..appointments.repository import AppointmentRepository
from .repository import CustomerRepository
from .schemas import CustomerHistoryResponse, CustomerResponse

logger = logging.getLogger(__name__)


def to_response(customer: Customer) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        phone=customer.phone,
        firstName=customer.first_name,
        lastName=customer.last_name,
        active=customer.active,
        created_at=customer.created_at,
    )


class CustomerService:
    """Service layer for customer business logic"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.repo = CustomerRepository()

    def _get(self, customer_id: int) -> Customer:
        customer = self.repo.get(self.uow.session, customer_id)
        if not customer:
            raise NotFoundError.of("Customer", customer_id)
        return customer

    def get(self, customer_id: int) -> CustomerResponse:
        with self.uow.transaction():
            return to_response(self._get(customer_id))

    def deactivate(self, customer_id: int) -> CustomerResponse:
        """Soft delete. Appointments are kept; a later booking by phone reactivates."""
        return self._set_active(customer_id, False)

    def reactivate(self, customer_id: int) -> CustomerResponse:
        return self._set_active(customer_id, True)

    def _set_active(self, customer_id: int, active: bool) -> CustomerResponse:
        with self.uow.transaction():
            customer = self._get(customer_id)
            changed = customer.active != active
            if changed:
                customer.active = active
                self.uow.flush()
            response = to_response(customer)

        if changed:
            logger.info(f"{'♻️ Reactivated' if active else '🚫 Deactivated'} customer {customer_id}")
        return response

    def history(self, customer_id: int) -> CustomerHistoryResponse:
        db = self.uow.session
        with self.uow.transaction():
            customer = self._get(customer_id)
            appointments = AppointmentRepository.list_for_customer(db, customer_id)

            return CustomerHistoryResponse(
                customer=to_response(customer),
                appointments=[appointment_response(a, customer) for a in appointments],
                completedCount=self.repo.count_by_status(
                    db, customer_id, AppointmentStatus.COMPLETED
                ),
                noShowCount=self.repo.count_by_status(db, customer_id, AppointmentStatus.NOSHOW),
            )
