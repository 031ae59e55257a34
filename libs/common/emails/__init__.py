"""
Email package.

Modules:
- client: EmailClient for sending emails via the Communications Service API
- store: order confirmation and shipment templates
"""
