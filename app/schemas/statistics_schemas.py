from pydantic import BaseModel, ConfigDict, Field


class AdminStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_books: int = Field(alias="totalBooks")
    total_orders: int = Field(alias="totalOrders")
    total_users: int = Field(alias="totalUsers")
    pending_orders: int = Field(alias="pendingOrders")
    total_revenue: float = Field(alias="totalRevenue")


class LibrarianStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shipped_orders: int = Field(alias="shippedOrders")
    pending_orders: int = Field(alias="pendingOrders")
    delivered_orders: int = Field(alias="deliveredOrders")
    cancelled_orders: int = Field(alias="cancelledOrders")
    total_books: int = Field(alias="totalBooks")
    total_revenue: float = Field(alias="totalRevenue")


class CustomerStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_orders: int = Field(alias="totalOrders")
    active_orders: int = Field(alias="activeOrders")
    total_spent: float = Field(alias="totalSpent")
