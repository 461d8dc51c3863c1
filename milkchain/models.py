"""
Domain models shared by the services.

Each model maps to one store table. ``to_row`` / ``from_row`` convert
between the dataclass and the snake_case row dict the store exchanges;
``COLUMN_ALIASES`` covers fields whose column name differs.
"""
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Any, ClassVar, Iterable

# Allocation status
ALLOCATION_ALLOCATED = 'allocated'
ALLOCATION_IN_PROGRESS = 'in_progress'
ALLOCATION_COMPLETED = 'completed'

# Delivery status
DELIVERY_PENDING = 'pending'
DELIVERY_COMPLETED = 'completed'
DELIVERY_CANCELLED = 'cancelled'
DELIVERY_STATUSES = (DELIVERY_PENDING, DELIVERY_COMPLETED, DELIVERY_CANCELLED)


class RowModel:
    """Mixin converting dataclass models to and from store rows"""

    TABLE: ClassVar[str] = ''
    COLUMN_ALIASES: ClassVar[Dict[str, str]] = {}

    @classmethod
    def column_for(cls, field_name: str) -> str:
        return cls.COLUMN_ALIASES.get(field_name, field_name)

    def to_row(self) -> Dict[str, Any]:
        row = {}
        for f in fields(self):
            if f.metadata.get('virtual'):
                continue
            row[self.column_for(f.name)] = getattr(self, f.name)
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]):
        kwargs = {}
        for f in fields(cls):
            column = cls.column_for(f.name)
            if column not in row:
                continue
            value = row[column]
            if f.type is float and value is not None:
                value = float(value)
            kwargs[f.name] = value
        return cls(**kwargs)

    @classmethod
    def from_rows(cls, rows: Iterable[Dict[str, Any]]) -> list:
        return [cls.from_row(row) for row in rows]


@dataclass
class Supplier(RowModel):
    TABLE = 'suppliers'

    id: str
    name: str
    email: str = ''
    username: str = ''
    password: str = ''
    phone: str = ''
    address: str = ''
    license_number: str = ''
    total_capacity: float = 0.0
    status: str = 'pending'
    registration_date: Optional[str] = None


@dataclass
class Customer(RowModel):
    TABLE = 'customers'

    id: str
    supplier_id: str
    name: str
    email: str = ''
    phone: str = ''
    address: str = ''
    daily_quantity: float = 0.0
    status: str = 'active'


@dataclass
class DeliveryPartner(RowModel):
    TABLE = 'delivery_partners'

    id: str
    supplier_id: str
    name: str
    email: str = ''
    phone: str = ''
    vehicle_number: str = ''
    status: str = 'active'
    password: str = ''
    daily_allocation: float = 0.0
    remaining_quantity: float = 0.0
    assigned_customers: List[str] = field(default_factory=list, metadata={'virtual': True})


@dataclass
class Farmer(RowModel):
    TABLE = 'farmers'

    id: str
    supplier_id: str
    name: str
    email: str = ''
    phone: str = ''
    address: str = ''
    user_id: str = ''
    password: str = ''
    status: str = 'active'


@dataclass
class DailyAllocation(RowModel):
    TABLE = 'daily_allocations'
    COLUMN_ALIASES = {'date': 'allocation_date'}

    id: str
    supplier_id: str
    delivery_partner_id: str
    date: str
    allocated_quantity: float
    remaining_quantity: float
    status: str = ALLOCATION_ALLOCATED
    created_at: str = ''


@dataclass
class Delivery(RowModel):
    TABLE = 'deliveries'
    COLUMN_ALIASES = {'date': 'delivery_date'}

    id: str
    customer_id: str
    delivery_partner_id: str
    supplier_id: str
    quantity: float
    suggested_quantity: float
    date: str
    status: str = DELIVERY_PENDING
    scheduled_time: Optional[str] = None
    completed_time: Optional[str] = None
    notes: Optional[str] = None

    @property
    def key(self) -> 'DeliveryKey':
        return DeliveryKey(self.customer_id, self.delivery_partner_id, self.date)


@dataclass
class PickupLog(RowModel):
    TABLE = 'pickup_logs'
    COLUMN_ALIASES = {'date': 'pickup_date'}

    id: str
    farmer_id: str
    supplier_id: str
    quantity: float
    date: str
    delivery_partner_id: Optional[str] = None
    quality_grade: str = 'A'
    fat_content: float = 0.0
    price_per_liter: float = 0.0
    total_amount: float = 0.0
    pickup_time: Optional[str] = None
    status: str = 'completed'
    notes: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class CustomerAssignment(RowModel):
    TABLE = 'customer_assignments'

    id: str
    delivery_partner_id: str
    customer_id: str
    created_at: Optional[str] = None


@dataclass(frozen=True)
class DeliveryKey:
    """Composite identity of a delivery: one customer, one partner, one day"""
    customer_id: str
    partner_id: str
    date: str

    @property
    def delivery_id(self) -> str:
        return f"{self.customer_id}_{self.partner_id}_{self.date}"

    @classmethod
    def parse(cls, delivery_id: str, customer_ids: Iterable[str],
              partner_ids: Iterable[str]) -> Optional['DeliveryKey']:
        """Recover the key from a ``{customer}_{partner}_{date}`` identifier.

        Identifiers may themselves contain underscores, so the split point is
        chosen by matching against known customers and partners.
        """
        head, sep, date = delivery_id.rpartition('_')
        if not sep or not head or not date:
            return None

        customers = set(customer_ids)
        partners = set(partner_ids)
        parts = head.split('_')
        for i in range(1, len(parts)):
            customer_id = '_'.join(parts[:i])
            partner_id = '_'.join(parts[i:])
            if customer_id in customers and partner_id in partners:
                return cls(customer_id, partner_id, date)
        return None
