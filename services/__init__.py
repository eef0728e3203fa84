"""
Service layer: the authentication flows (auth_service) and account
management (user_service). Services take their stores and helpers
explicitly; create_app() wires them up.
"""
