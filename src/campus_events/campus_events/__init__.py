"""Campus Events package.

This package is organized by feature modules (events, registrations,
attendance, food_stalls, users, ...) with a thin Flask controller layer, a
session-scoped data service and interchangeable repository backends
(Supabase, MySQL, in-memory).
"""
