"""
API Routers - Endpoint handlers for the Survey Validation API.

- validation_queue: Review listing, statistics, adjudication and export auditing
- realtime: WebSocket feed of queue events
"""
