"""Customers and sites that internal staff can pick as customer-view targets."""

from __future__ import annotations

from .config import AccessConfig
from .impersonation import Customer, Site


def list_customers(config: AccessConfig) -> list[Customer]:
    return [
        Customer(id=c.id, name=c.name, segment=c.segment, industry=c.industry)
        for c in config.catalog.customers
    ]


def find_customer(config: AccessConfig, customer_id: str) -> Customer | None:
    for customer in list_customers(config):
        if customer.id == customer_id:
            return customer
    return None


def sites_for_segment(config: AccessConfig, segment: str) -> list[Site]:
    return [Site(id=s.site_id, name=s.site_name) for s in config.catalog.sites.get(segment, [])]
