"""Fixfly.

Backend service for the Fixfly IT repair and AMC (annual maintenance
contract) booking platform.

High-level architecture
-----------------------

- ``fixfly.core``:

  - Logging configuration and Logfire monitoring helpers.
  - The database layer: SQLModel entities, async repositories and the
    session/engine management.
  - I/O schemas exchanged with API clients and the domain enums.

- ``fixfly.server``:

  - The FastAPI application, its routers, middleware and exception handlers.
  - Service classes holding the business rules (bookings, vendor wallets,
    support tickets, AMC subscriptions) and the integrations with Razorpay
    and the SMS gateway.

Typical workflow
----------------

1. A customer verifies their phone number by OTP and creates a booking.
2. An admin assigns a vendor; the vendor has 25 minutes to respond before
   the booking is auto-rejected and returned to the queue.
3. The vendor completes the job and the customer pays online or in cash.
4. Every money movement is written to the vendor's wallet ledger.
"""
