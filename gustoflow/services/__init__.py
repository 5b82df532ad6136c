"""
                        Services Module

Business logic for the restaurant floor, kitchen and till, plus the stores
and the gateway dispatcher they run on.

Services:
    - store: RemoteStore (gateway client) and LocalStore (fallback)
    - gateway: server-side action → SQL dispatcher
    - orders / billing / customers / staff / menu / stock / branding
    - bootstrap: schema creation and seed data
    - reports: dashboard aggregates
"""
