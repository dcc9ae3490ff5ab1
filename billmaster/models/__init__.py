from billmaster.models.company import Company
from billmaster.models.role import Permission, Role
from billmaster.models.user import User
from billmaster.models.product import Product
from billmaster.models.customer import Customer
from billmaster.models.invoice import Invoice, InvoiceItem
