# pharmapos/models/registry.py
# Importing this module puts every table on Base.metadata so foreign keys
# resolve no matter which model a caller imported first.

from pharmapos.models.pharmacies import Pharmacy
from pharmapos.models.users import User
from pharmapos.models.medicines import Medicine
from pharmapos.models.inventory import Inventory
from pharmapos.models.sales import Sale
from pharmapos.models.sale_items import SaleItem

__all__ = ["Pharmacy", "User", "Medicine", "Inventory", "Sale", "SaleItem"]
