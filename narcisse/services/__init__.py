"""Services package: all business logic lives here, never in routers.

Files:
  availability.py      Slot grid, rotation and capacity for the public calendar
  booking.py           Create / edit / move / cancel bookings, group chains, references
  booking_tokens.py    HMAC cancel and QR tokens
  holds.py             Pending-booking release and stale hold cleanup
  fleet.py             Boats, maintenance and battery counters
  accounting.py        Planning blocks, day closures, cash drawer, ledger
  stats.py             Back-office statistics
  payment.py           Payment history and refunds
  manual_payments.py   Cash / voucher / cheque / Astoria payloads
  online_payments.py   Stripe intents, webhook settlement, PayPal capture
  stripe_service.py    Stripe PaymentIntents and webhook checks (stripe SDK)
  paypal_service.py    Thin PayPal REST client (httpx)
  vat.py               Net / VAT split for ledger entries
  cms.py               Hero slides, partners, site config, publish
  employees.py         Staff accounts and directory
  documents.py         Employee documents and their versions
  hours.py             Work shifts and the monthly hours report
  contacts.py          Stored group / private requests, conversion to bookings
  storage.py           S3 / MinIO presigned URLs and objects (boto3)
  pdf.py               PDF first-page previews (PyMuPDF)
  emails.py            Confirmation and contact mail bodies
  mailer.py            Mail delivery (Resend API or SMTP)
  captcha.py           Captcha verification
  phone.py             Phone number normalization
  password_policy.py   Password strength rules
  qr.py                Ticket QR codes
  activity_log.py      Business log entries

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
