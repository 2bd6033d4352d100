from .customer import Customer
from .invoice import Invoice
from .plan import Plan
from .router import RouterDevice
