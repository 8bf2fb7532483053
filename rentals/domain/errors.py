# rentals/domain/errors.py
"""
Domain errors raised by the services. Every error carries the HTTP status it
maps to; the API layer renders them as {"message": ...}.
"""


class RentalError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RentalError):
    status_code = 400


class AuthenticationError(RentalError):
    status_code = 401


class ForbiddenError(RentalError):
    status_code = 403


class NotFoundError(RentalError):
    status_code = 404


class ConflictError(RentalError):
    status_code = 409


class PaymentSignatureError(RentalError):
    status_code = 400


class GatewayError(RentalError):
    status_code = 500
