from dataclasses import dataclass

from sqlmodel import Session

from app.services.inventory_service import InventoryStore
from app.services.order_store import OrderStore
from app.services.stripe_gateway import CheckoutGateway
from app.services.user_store import UserStore


@dataclass
class ServiceContext:
    """Store and gateway handles for one unit of work (usually a request)."""

    session: Session
    orders: OrderStore
    inventory: InventoryStore
    users: UserStore
    gateway: CheckoutGateway


def build_context(session: Session, gateway: CheckoutGateway) -> ServiceContext:
    return ServiceContext(
        session=session,
        orders=OrderStore(session),
        inventory=InventoryStore(session),
        users=UserStore(session),
        gateway=gateway,
    )
