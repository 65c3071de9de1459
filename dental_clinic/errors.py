"""Domain errors raised below the route layer."""


class RecordNotFoundError(LookupError):
    def __init__(self, model_name: str, record_id: int):
        super().__init__(f'{model_name} {record_id} not found.')
        self.model_name = model_name
        self.record_id = record_id


class BookingError(Exception):
    """A booking request that cannot be honoured as submitted."""


class SlotUnavailableError(BookingError):
    def __init__(self, message: str = 'This time slot is already booked. Please select another time.'):
        super().__init__(message)


class NoDoctorAvailableError(BookingError):
    def __init__(self, message: str = 'No doctor available. Please try again later.'):
        super().__init__(message)
