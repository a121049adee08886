"""Find-or-create customers by phone number"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ...models import Customer
from ...shared.errors import TransientStoreError, ValidationError
from ...shared.validators import normalize_phone, trim_or_none
from ...unit_of_work import UnitOfWork
from .repository import CustomerRepository

logger = logging.getLogger(__name__)


class CustomerResolver:
    """Resolves the customer behind a booking, creating it on first contact"""

    def __init__(self, uow: UnitOfWork, country: Optional[str] = None):
        self.uow = uow
        self.country = country
        self.repo = CustomerRepository()

    def resolve_or_create(self, phone: Optional[str], display_name: Optional[str] = None) -> Customer:
        """
        Return the customer owning phone, creating an active one if none exists.

        A non-blank name different from the stored one replaces it. Runs inside
        the caller's transaction; a concurrent insert of the same phone is
        absorbed by re-reading once.
        """
        normalized = normalize_phone(phone, self.country)
        if not normalized:
            raise ValidationError("Phone number is required")

        name = trim_or_none(display_name)

        customer = self.repo.find_by_phone(self.uow.session, normalized)
        if customer:
            return self._refresh(customer, name)

        try:
            with self.uow.session.begin_nested():
                customer = self.repo.insert(
                    self.uow.session, phone=normalized, first_name=name, active=True
                )
            logger.info(f"✅ Created customer {customer.id} for {normalized}")
            return customer
        except IntegrityError:
            logger.info(f"Customer {normalized} created concurrently, re-reading")

        customer = self.repo.find_by_phone(self.uow.session, normalized)
        if not customer:
            raise TransientStoreError(f"Could not resolve customer for {normalized}, retry")
        return self._refresh(customer, name)

    def _refresh(self, customer: Customer, name: Optional[str]) -> Customer:
        if not customer.active:
            # Phone is unique, so booking again brings the deactivated record back
            customer.active = True
            logger.info(f"♻️ Reactivated customer {customer.id} on new booking")
        if name and name != customer.first_name:
            customer.first_name = name
        return customer
