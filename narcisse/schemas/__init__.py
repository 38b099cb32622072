"""Pydantic schemas package.

Folder intent:
  common.py       CamelModel base + HealthResponse (all schemas inherit CamelModel)
  auth.py         Login, token and current-user payloads
  booking.py      Public and back-office booking payloads, manual payments
  boat.py         Fleet payloads
  payment.py      Payment intents, captures, refunds and history
  accounting.py   Blocks, closures, cash sessions, ledger, stats, logs
  cms.py          Hero slides, partners, site config
  employee.py     Staff accounts, documents and work shifts
  contact.py      Contact forms and the request inbox
"""
