from __future__ import annotations

import logging
from typing import Optional

from bizdesk.domain.errors import NotFoundError, ValidationError
from bizdesk.domain.models import Customer
from bizdesk.services.validation import clean_text, require_text

log = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, repo):
        self.repo = repo

    def list_customers(self, user_id: Optional[int] = None) -> list[Customer]:
        return self.repo.list_customers(user_id)

    def get_customer(self, customer_id: int) -> Customer:
        c = self.repo.get_customer(int(customer_id))
        if not c:
            raise NotFoundError("Customer not found")
        return c

    def add_customer(self, name: str, email=None, phone=None, address=None, user_id: Optional[int] = None) -> Customer:
        name = require_text(name, "Name is required")
        customer = self.repo.create_customer(name, clean_text(email), clean_text(phone), clean_text(address), user_id)
        log.info("customer_created id=%s actor=%s", customer.id, user_id)
        return customer

    def update_customer(
        self, customer_id: int, name: str, email=None, phone=None, address=None, user_id: Optional[int] = None
    ) -> Customer:
        if not customer_id:
            raise ValidationError("ID and name are required")
        name = require_text(name, "ID and name are required")
        customer = self.repo.update_customer(
            int(customer_id), name, clean_text(email), clean_text(phone), clean_text(address), user_id
        )
        if customer is None:
            raise NotFoundError("Failed to update customer")
        return customer

    def delete_customer(self, customer_id: int) -> None:
        if not self.repo.delete_customer(int(customer_id)):
            raise NotFoundError("Failed to delete customer")
        log.info("customer_deleted id=%s", customer_id)
