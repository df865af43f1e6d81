from sqlmodel import select, Session
from models.menu_items import MenuItem


def list_menu_items(
    db: Session,
    available_only: bool = False
) -> list[MenuItem]:
    """List menu items grouped by category."""
    query = select(MenuItem)

    if available_only:
        query = query.where(MenuItem.availability == True)  # noqa: E712

    return db.exec(query.order_by(MenuItem.category, MenuItem.product_name)).all()


def get_menu_item_by_name(
    db: Session,
    product_name: str
) -> MenuItem | None:
    """Get a menu item by its exact product name."""
    return db.exec(
        select(MenuItem).where(MenuItem.product_name == product_name)
    ).first()


def get_or_create_menu_item(
    db: Session,
    product_name: str,
    amount: float,
    **fields
) -> tuple[MenuItem, bool]:
    """Get a menu item by name or create it. Returns (item, created)."""
    item = get_menu_item_by_name(db, product_name)
    if item:
        return item, False

    item = MenuItem(product_name=product_name, amount=amount, **fields)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item, True
