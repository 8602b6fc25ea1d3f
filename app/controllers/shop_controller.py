"""
Shop controller: home page, product catalogue and the session cart.

Routes require an authenticated session (enforced by the access
policy); handlers read the session through `get_current_session`.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.rbac.dependencies import get_current_session
from app.schemas import CartOut, CurrentUserOut, MessageResponse, ProductOut
from app.services import cart_service, product_service
from app.services.session_manager import LoginSession

router = APIRouter(tags=["Shop"])


@router.get("/", response_model=CurrentUserOut)
async def home(sess: LoginSession = Depends(get_current_session)):
    return CurrentUserOut(username=sess.username, authorities=sorted(sess.authorities))


# ── Products ─────────────────────────────────────────────────────────
@router.get("/products", response_model=list[ProductOut])
async def list_products(
    sess: LoginSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    products = await product_service.list_products(db, skip, limit)
    return [ProductOut.model_validate(p) for p in products]


@router.get("/products/{product_id}", response_model=ProductOut)
async def get_product(
    product_id: int,
    sess: LoginSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    return ProductOut.model_validate(await product_service.get_product(product_id, db))


# ── Cart ─────────────────────────────────────────────────────────────
@router.get("/cart", response_model=CartOut)
async def view_cart(
    sess: LoginSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    return await cart_service.summarize(sess, db)


@router.post("/cart/items/{product_id}", response_model=CartOut)
async def add_to_cart(
    product_id: int,
    sess: LoginSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Add one unit of a product to the cart."""
    await cart_service.add_item(sess, product_id, db)
    return await cart_service.summarize(sess, db)


@router.api_route("/cart/clear", methods=["POST", "DELETE"], response_model=MessageResponse)
async def clear_cart(sess: LoginSession = Depends(get_current_session)):
    cart_service.clear(sess)
    return MessageResponse(detail="Cart cleared")
