"""Webhook ingress gateway for GitHub deliveries.

This package provides:
- HMAC signature verification over the raw request body
- A request-validation state machine that dispatches verified events
- A pluggable event handler contract with a reference GitHub handler
- Structured gateway events routed to logs and Prometheus metrics
"""
