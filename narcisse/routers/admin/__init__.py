"""Back-office router package: all /api/admin/* endpoints live here.

Files:
  bookings.py    planning, edits, check-in / completion, payment history
  payments.py    refunds and payment metrics
  boats.py       fleet and maintenance counters
  accounting.py  blocks, day closures, cash drawer, ledger, stats, logs
  cms.py         hero slides, partners, site configuration, publish
  employees.py   staff accounts
  files.py       employee documents (S3 / MinIO)
  hours.py       work shifts and the monthly hours report
  contacts.py    group / private-tour request inbox, conversion to a booking

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to narcisse/services/.
      Reads are open to staff, writes to ADMIN / SUPERADMIN.
"""
