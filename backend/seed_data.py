#!/usr/bin/env python3
"""
Script to seed the staff account and the menu.
Existing rows are kept; running it twice is safe.
"""
import sys
from sqlmodel import Session

from db.session import SessionLocal, init_db
from crud.admins import create_admin, get_admin_by_email
from crud.menu import get_or_create_menu_item

# (name, amount, category, is_veg, description)
MENU_ITEMS = [
    ("Veg Steam Momo", 100, "Momos", True, ""),
    ("Veg Fried Momo", 120, "Momos", True, ""),
    ("Paneer Steam Momo", 120, "Momos", True, ""),
    ("Paneer Fried Momo", 140, "Momos", True, ""),
    ("Chicken Steam Momo", 120, "Momos", False, ""),
    ("Chicken Fried Momo", 140, "Momos", False, ""),
    ("Cheese Corn Steam Momo", 150, "Momos", True, ""),
    ("Veg Tandoori Momo", 160, "Tandoori Momos", True, ""),
    ("Chicken Tandoori Momo", 180, "Tandoori Momos", False, ""),
    ("Veg Hakka Noodles", 130, "Noodles", True, ""),
    ("Chicken Hakka Noodles", 150, "Noodles", False, ""),
    ("Veg Fried Rice", 130, "Rice", True, ""),
    ("Manchow Soup", 90, "Soups", True, ""),
    ("Cold Coffee", 90, "Beverages", True, ""),
    ("Water Bottle", 20, "Beverages", True, "Mineral Water Bottle"),
    ("Chocolate Brownie", 110, "Desserts", True, ""),
]

CATEGORY_IMAGES = {
    "Momos": "steam_momo.png",
    "Tandoori Momos": "tandoori_momo.png",
    "Noodles": "noodles.png",
    "Rice": "noodles.png",
    "Beverages": "BEVERAGES.png",
    "Desserts": "dessert.png",
}


def seed_admin(db: Session, email: str, password: str, name: str):
    admin = get_admin_by_email(db, email)
    if admin:
        print(f"✓ Using existing admin: {admin.email} (ID: {admin.id})")
        return admin

    admin = create_admin(db, email=email, password=password, name=name)
    print(f"✓ Created admin: {admin.email} (ID: {admin.id})")
    return admin


def seed_menu(db: Session, image_base_url: str = "/images") -> int:
    """Insert missing menu items. Returns how many were created."""
    created_count = 0
    for name, amount, category, is_veg, description in MENU_ITEMS:
        image = CATEGORY_IMAGES.get(category, "special_dishes.png")
        _, created = get_or_create_menu_item(
            db,
            name,
            amount,
            category=category,
            is_veg=is_veg,
            description=description or f"Delicious {name}",
            availability=True,
            image_link=f"{image_base_url}/{image}",
        )
        if created:
            created_count += 1
    print(f"✓ Menu ready: {created_count} new item(s), {len(MENU_ITEMS)} total")
    return created_count


def main():
    """Main function to seed the database."""
    import argparse

    parser = argparse.ArgumentParser(description="Seed the staff account and menu")
    parser.add_argument("--admin-email", type=str, default="master@gmail.com")
    parser.add_argument("--admin-password", type=str, default="master123")
    parser.add_argument("--admin-name", type=str, default="Master Admin")
    parser.add_argument(
        "--image-base-url",
        type=str,
        default="/images",
        help="Prefix for menu image links (default: /images)"
    )

    args = parser.parse_args()

    init_db()
    db = SessionLocal()

    try:
        seed_admin(db, args.admin_email, args.admin_password, args.admin_name)
        seed_menu(db, args.image_base_url)
    except Exception as e:
        print(f"✗ Error: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
