"""Multi-tenant network-operations portal: access scope and customer-view control."""
