# app/errors.py
"""
Domain errors raised by the services.
Each carries the HTTP status the API layer answers with; the handler in
app.main turns them into {"error": ..., "code": ...} responses.
"""


class ParkingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__


class InvalidInput(ParkingError):
    """Missing or malformed fields, reserved hours below 1."""
    status_code = 400


class NotFound(ParkingError):
    """Lot, spot, reservation or intent does not exist."""
    status_code = 404


class LotNotFound(NotFound):
    pass


class NoAvailability(ParkingError):
    """Every spot in the lot is occupied."""
    status_code = 404


class InvalidPayment(ParkingError):
    """Intent missing, wrong method, expired, already used or not yet paid."""
    status_code = 400
