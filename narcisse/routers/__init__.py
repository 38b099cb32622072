"""Routers package: HTTP endpoint definitions.

Files:
  auth.py           /api/auth/*
  availability.py   /api/availability
  bookings.py       /api/bookings/* (create, cancel, QR, release)
  payments.py       /api/payments/* (Stripe, PayPal, webhook)
  cms.py            /api/cms/* (published content, legal pages)
  contact.py        /api/contact/*
  metrics.py        /api/metrics
  admin/            Back-office routes (/api/admin/*)
"""
