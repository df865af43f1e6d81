import logging

from pydantic import ValidationError

from client.api import OrderServiceClient
from client.exceptions import OrderServiceError
from client.models import CartItem, CartTotals
from client.storage import AUTO_ADD_REMOVED_KEY, CART_KEY, MemoryStore

logger = logging.getLogger(__name__)

TAX_RATE = 0.08
AUTO_ADD_PRODUCT_NAME = "Water Bottle"


class CartStore:
    """Lines of the order being built; the only path that mutates them.

    `store` is the device-local store, `session_store` the per-browser-session one
    that remembers whether the customer removed the auto-added item.
    """

    def __init__(
        self,
        store: MemoryStore,
        session_store: MemoryStore,
        catalog: OrderServiceClient | None = None,
        tax_rate: float = TAX_RATE,
        auto_add_product_name: str = AUTO_ADD_PRODUCT_NAME
    ):
        self._store = store
        self._session_store = session_store
        self._catalog = catalog
        self.tax_rate = tax_rate
        self.auto_add_product_name = auto_add_product_name
        self._initialized = False
        self._items: list[CartItem] = self._load()

    def _load(self) -> list[CartItem]:
        data = self._store.get(CART_KEY)
        if data is None:
            return []
        try:
            return [CartItem.model_validate(item) for item in data]
        except (TypeError, ValidationError):
            logger.warning("[Cart] Discarding corrupted cart snapshot")
            self._store.delete(CART_KEY)
            return []

    def _persist(self):
        try:
            self._store.set(CART_KEY, [item.model_dump() for item in self._items])
        except Exception:
            logger.exception("[Cart] Failed to persist cart snapshot")

    @property
    def items(self) -> list[CartItem]:
        return [item.model_copy() for item in self._items]

    @property
    def is_empty(self) -> bool:
        return not self._items

    def _find(self, key: str) -> CartItem | None:
        for item in self._items:
            if item.line_key == key:
                return item
        for item in self._items:
            if item.product_id == key:
                return item
        return None

    def add_item(self, item: CartItem, quantity: int = 1):
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        existing = self._find_exact(item.line_key)
        if existing:
            existing.quantity += quantity
        else:
            self._items.append(item.model_copy(update={"quantity": quantity}))
        self._persist()

    def _find_exact(self, key: str) -> CartItem | None:
        return next((item for item in self._items if item.line_key == key), None)

    def decrement_item(self, key: str):
        """Take one off a line; the last one removes the line."""
        item = self._find(key)
        if not item:
            return
        if item.quantity > 1:
            item.quantity -= 1
            self._persist()
        else:
            self._remove(item)

    def delete_item(self, key: str):
        item = self._find(key)
        if item:
            self._remove(item)

    def _remove(self, item: CartItem):
        self._items.remove(item)
        if item.is_auto_added or item.name == self.auto_add_product_name:
            self._session_store.set(AUTO_ADD_REMOVED_KEY, True)
        self._persist()

    def quantity_of(self, product_id: str) -> int:
        return sum(item.quantity for item in self._items if item.product_id == product_id)

    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    def totals(self) -> CartTotals:
        subtotal = sum(item.line_total for item in self._items)
        tax = subtotal * self.tax_rate
        return CartTotals(subtotal=subtotal, tax=tax, delivery_fee=0.0, total=subtotal + tax)

    def clear(self):
        self._items = []
        try:
            self._store.delete(CART_KEY)
        except Exception:
            logger.exception("[Cart] Failed to clear cart snapshot")

    async def initialize(self):
        """Offer the auto-add item once per store, unless removed or unavailable."""
        if self._initialized:
            return
        self._initialized = True

        if self._session_store.get(AUTO_ADD_REMOVED_KEY) is True:
            logger.info(f"[Cart] {self.auto_add_product_name} was removed earlier, skipping auto-add")
            return
        if any(item.name == self.auto_add_product_name for item in self._items):
            return
        if self._catalog is None:
            return

        try:
            product = await self._catalog.get_menu_item_by_name(self.auto_add_product_name)
        except OrderServiceError as e:
            logger.warning(f"[Cart] Catalog lookup for {self.auto_add_product_name} failed: {e}")
            return

        if not product or not product.availability:
            logger.info(f"[Cart] {self.auto_add_product_name} unavailable, skipping auto-add")
            return

        self._items.append(CartItem(
            product_id=product.id,
            name=product.product_name,
            unit_price=product.amount,
            quantity=1,
            description=product.description,
            image_ref=product.image_link,
            is_veg=product.is_veg,
            is_auto_added=True,
        ))
        self._persist()
