# Smart Parking — in-memory domain records
# Everything lives in app.store.ParkingStore for the lifetime of the process

from app.models.lot import Lot                                   # noqa
from app.models.spot import Spot                                 # noqa
from app.models.payment_intent import PaymentIntent              # noqa
from app.models.reservation import Payment, Reservation          # noqa
from app.models.event import Event                               # noqa
