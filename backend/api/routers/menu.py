from fastapi import APIRouter, HTTPException, Query

from api.deps import SessionDep
from crud import menu as crud_menu
from schemas.menu import MenuItemResponse

router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("", response_model=list[MenuItemResponse])
def list_menu(
    available_only: bool = Query(False, description="Hide items that are out of stock"),
    db: SessionDep = None
):
    """Get the menu catalog."""
    return crud_menu.list_menu_items(db, available_only=available_only)


@router.get("/by-name/{product_name}", response_model=MenuItemResponse)
def get_menu_item_by_name(product_name: str, db: SessionDep):
    """Look up a single menu item by its exact name."""
    item = crud_menu.get_menu_item_by_name(db, product_name)
    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item
