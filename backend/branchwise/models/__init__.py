from .catalog import Product, ProductPage, Branch, BankAccount
from .customers import Customer
from .registers import Shift, ShiftBreakdown
from .sales import DISCOUNT_NOMINAL, DISCOUNT_PERCENTAGE, DISCOUNT_TYPES, LineDiscount, CartLine, SaleTotals, Sale, FinalizedSale
