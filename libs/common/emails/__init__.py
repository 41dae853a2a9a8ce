"""
Studio email package.

Modules:
- client: EmailClient for sending emails via the Communications Service API

Templates are owned by the Communications Service; services only send a
template type plus its data.
"""
