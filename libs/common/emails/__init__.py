"""
Email package.

Modules:
- client: EmailClient for sending templated emails via the Communications Service API

Templates live in the Communications Service; other services only forward a
template type and its data.
"""
