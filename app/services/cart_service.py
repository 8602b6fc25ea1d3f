"""
Shopping cart: kept in the login session, not the database.

The cart is a `{product_id: quantity}` dict stored under the
session's "cart" attribute, so it disappears with the session
(logout, expiry, eviction).
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.services import product_service
from app.services.session_manager import LoginSession

CART_KEY = "cart"


def _cart(sess: LoginSession) -> dict[int, int]:
    return sess.attributes.setdefault(CART_KEY, {})


async def add_item(sess: LoginSession, product_id: int, db: AsyncSession) -> dict[int, int]:
    # Raises 404 for unknown products before touching the cart.
    await product_service.get_product(product_id, db)
    cart = _cart(sess)
    cart[product_id] = cart.get(product_id, 0) + 1
    return cart


def clear(sess: LoginSession) -> None:
    sess.attributes.pop(CART_KEY, None)


async def summarize(sess: LoginSession, db: AsyncSession) -> dict:
    """Cart lines joined with current product data, plus the total."""
    cart = _cart(sess)
    products = await product_service.get_products_by_ids(list(cart), db)
    lines = []
    total = Decimal("0")
    for product_id, quantity in cart.items():
        product = products.get(product_id)
        if product is None:
            # Product removed from the catalogue since it was added.
            continue
        subtotal = product.price * quantity
        total += subtotal
        lines.append({
            "product_id": product_id,
            "name": product.name,
            "unit_price": product.price,
            "quantity": quantity,
            "subtotal": subtotal,
        })
    return {"items": lines, "total": total}
